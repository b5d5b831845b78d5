#!/usr/bin/env python3

from flask import Flask, request, jsonify
import argparse
import json
import logging
import pickle
import sys
import threading
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

import errors
import ledger
import roles
import signing
import tokens
import util
import whitelist

MAX_PROOF_LENGTH = 256  # Maximum number of hashes accepted in a proof
ADMIN_ACTIONS = ['setMerkleRoot', 'setUpgradeAmount', 'pause', 'unpause',
                 'emergencyWithdraw', 'grantRole', 'revokeRole']

log = logging.getLogger(__name__)


def error_response(exc):
    """Converts a ledger error to a JSON error response."""
    status = 403 if isinstance(exc, errors.AuthorizationError) else 400
    log.debug(f"Request failed: {exc}")
    return jsonify({
        'success': False,
        'error': str(exc),
        'type': type(exc).__name__,
    }), status


def admin_payload(args):
    """Canonical string form of admin action arguments, as signed."""
    return json.dumps(args, sort_keys=True, separators=(',', ':'))


def run_admin_action(claim_ledger, caller, action, args):
    """Dispatches an admin action to the ledger."""
    if action == 'setMerkleRoot':
        claim_ledger.setMerkleRoot(caller, args['root'])
    elif action == 'setUpgradeAmount':
        claim_ledger.setUpgradeAmount(caller, args['amount'])
    elif action == 'pause':
        claim_ledger.pause(caller)
    elif action == 'unpause':
        claim_ledger.unpause(caller)
    elif action == 'emergencyWithdraw':
        claim_ledger.emergencyWithdraw(caller, args['token'], args['amount'])
    elif action == 'grantRole':
        claim_ledger.grantRole(caller, roles.parseRole(args['role']),
                               args['account'])
    elif action == 'revokeRole':
        claim_ledger.revokeRole(caller, roles.parseRole(args['role']),
                                args['account'])


def create_app(claim_ledger, tree=None, chain_id=1):
    """
    Builds the Flask app serving the given claim ledger.  If the Merkle
    tree of the current whitelist is passed, recipients can also look up
    their proofs through the app.
    """
    app = Flask(__name__)

    # Next expected admin nonce per signer.  Each nonce is used only once.
    admin_nonces = {}
    nonce_lock = threading.Lock()

    @app.route('/stats', methods=['GET'])
    def stats():
        total_claimed, total_claimers = claim_ledger.getClaimStats()
        return jsonify({
            'totalClaimed': str(total_claimed),
            'totalClaimers': total_claimers,
            'root': util.toHex(claim_ledger.merkleRoot),
            'paused': claim_ledger.paused(),
            'upgradeAmount': str(claim_ledger.upgradeAmount),
            'version': claim_ledger.version,
        })

    @app.route('/claimed/<address>', methods=['GET'])
    def claimed(address):
        try:
            return jsonify({
                'address': util.normaliseAddress(address),
                'claimed': claim_ledger.isClaimed(address),
            })
        except errors.LedgerError as e:
            return error_response(e)

    @app.route('/nonce/<address>', methods=['GET'])
    def nonce(address):
        try:
            address = util.normaliseAddress(address)
        except errors.LedgerError as e:
            return error_response(e)

        with nonce_lock:
            return jsonify({
                'address': address,
                'nonce': admin_nonces.get(address, 0),
            })

    @app.route('/proof/<address>', methods=['GET'])
    def proof(address):
        if tree is None:
            return jsonify({
                'success': False,
                'error': 'No whitelist loaded'
            }), 404

        try:
            entries = tree.lookupAddress(address)
        except errors.LedgerError as e:
            return error_response(e)

        if not entries:
            return jsonify({
                'success': False,
                'error': 'Address is not whitelisted'
            }), 404

        return jsonify({
            'success': True,
            'root': util.toHex(tree.root),
            'claimed': claim_ledger.isClaimed(address),
            'entries': [
                {
                    'address': e.address,
                    'amount': str(e.amount),
                    'proof': [util.toHex(p) for p in tree.getProof(e)],
                }
                for e in entries
            ],
        })

    @app.route('/claim', methods=['POST'])
    def claim():
        """Executes a claim signed by the claimant."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({
                'success': False,
                'error': 'Expected a JSON object'
            }), 400

        for field in ['claimant', 'amount', 'proof', 'signature']:
            if field not in data:
                return jsonify({
                    'success': False,
                    'error': f'Missing field: {field}'
                }), 400

        proof_hashes = data['proof']
        if not isinstance(proof_hashes, list) \
                or len(proof_hashes) > MAX_PROOF_LENGTH:
            return jsonify({
                'success': False,
                'error': 'Proof must be a list of at most '
                         f'{MAX_PROOF_LENGTH} hashes'
            }), 400

        try:
            root = data.get('root', util.toHex(claim_ledger.merkleRoot))
            claimant = signing.recoverClaimant(
                data['signature'], data['claimant'], data['amount'], root,
                claim_ledger.address, chain_id)
            claim_ledger.claim(claimant, data['amount'], proof_hashes)
        except errors.LedgerError as e:
            return error_response(e)

        return jsonify({
            'success': True,
            'claimant': claimant,
            'amount': str(util.parseAmount(data['amount'])),
        })

    @app.route('/admin/<action>', methods=['POST'])
    def admin(action):
        """Executes an administrative action signed by a role holder."""
        if action not in ADMIN_ACTIONS:
            return jsonify({
                'success': False,
                'error': f'Unknown action: {action}'
            }), 404

        data = request.get_json(silent=True)
        if not isinstance(data, dict) or 'signature' not in data \
                or 'nonce' not in data:
            return jsonify({
                'success': False,
                'error': 'Expected a JSON object with signature and nonce'
            }), 400

        args = data.get('args', {})
        if not isinstance(args, dict):
            return jsonify({
                'success': False,
                'error': 'Arguments must be a JSON object'
            }), 400

        try:
            caller = signing.recoverAdmin(
                data['signature'], action, admin_payload(args),
                data['nonce'], claim_ledger.address, chain_id)
            with nonce_lock:
                expected = admin_nonces.get(caller, 0)
                if util.parseAmount(data['nonce']) != expected:
                    raise errors.InvalidSignature(
                        f'stale nonce {data["nonce"]}, expected {expected}')
                # The nonce is spent even if the action fails.
                admin_nonces[caller] = expected + 1
                run_admin_action(claim_ledger, caller, action, args)
        except KeyError as e:
            return jsonify({
                'success': False,
                'error': f'Missing argument: {e.args[0]}'
            }), 400
        except errors.LedgerError as e:
            return error_response(e)

        return jsonify({
            'success': True,
            'action': action,
            'caller': caller,
        })

    return app


def load_tree(filename):
    """Load the whitelist Merkle tree from a pickle or whitelist file."""
    try:
        if filename.endswith('.json'):
            with open(filename, 'r') as f:
                return whitelist.MerkleTree(whitelist.loadWhitelist(f))
        with open(filename, 'rb') as f:
            return pickle.load(f)
    except (OSError, errors.LedgerError) as e:
        print(f"Error loading whitelist from {filename}: {e}", file=sys.stderr)
        sys.exit(1)


def load_token_contract(rpc_url, address, abi_path):
    """Connects to the node and returns the token contract adapter."""
    web3 = Web3(Web3.HTTPProvider(rpc_url))
    web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    if not web3.is_connected():
        print(f"Error: Could not connect to Ethereum node at {rpc_url}",
              file=sys.stderr)
        sys.exit(1)

    with open(abi_path, 'r') as f:
        abi = json.load(f)["abi"]

    contract = web3.eth.contract(address=address, abi=abi)
    return tokens.ContractToken(contract)


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Merkle Airdrop Claim Service')
    parser.add_argument('--load', required=True,
                        help='Whitelist JSON or pickled Merkle tree')
    parser.add_argument('--admin', required=True,
                        help='Address that receives the admin roles')
    parser.add_argument('--chain-id', type=int, default=1,
                        help='Chain ID used in the EIP712 signatures')
    parser.add_argument('--rpc-url', default='',
                        help='Ethereum RPC endpoint URL of the token')
    parser.add_argument('--token-contract', default='',
                        help='Address of the deployed token contract')
    parser.add_argument('--token-abi', default='',
                        help='Path to the ABI JSON of the token contract')
    parser.add_argument('--ledger-address', default=None,
                        help='Address the ledger mints from (needs MINTER_ROLE)')
    parser.add_argument('--port', type=int, default=5000)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    tree = load_tree(args.load)

    if args.rpc_url:
        token = load_token_contract(args.rpc_url, args.token_contract,
                                    args.token_abi)
        print(f"Connected to Ethereum node, token at {token.address}")
    else:
        token_address = '0x' + bytes(
            Web3.keccak(text='MyMintableToken'))[-20:].hex()
        token = tokens.MintableToken(token_address, args.admin)

    claim_ledger = ledger.ClaimLedger(token, tree.root, args.admin,
                                      address=args.ledger_address)
    if isinstance(token, tokens.MintableToken):
        token.grantRole(args.admin, roles.MINTER_ROLE, claim_ledger.address)

    print(f"Loaded whitelist with {len(tree.entries)} entries")
    print(f"Total claimable amount: {util.formatAmount(tree.total)}")
    print(f"Merkle root: {util.toHex(tree.root)}")
    print(f"Ledger address: {claim_ledger.address}")

    app = create_app(claim_ledger, tree, args.chain_id)
    app.run(port=args.port)
