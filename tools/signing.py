# Copyright (C) 2024 The Xaya developers

"""
EIP712 signatures for requests to the claim ledger service.  The ledger
itself takes the caller as given; when requests come in over HTTP, the
caller proves its identity by signing the request with its key.
"""

import errors
import util

from eth_account import Account
from eth_account.messages import encode_typed_data


DOMAIN_TYPE = [
  {"name": "name", "type": "string"},
  {"name": "version", "type": "string"},
  {"name": "chainId", "type": "uint256"},
  {"name": "verifyingContract", "type": "address"},
]


def buildDomain (verifyingContract, chainId):
  return {
    "name": "MerkleDrop",
    "version": "1",
    "chainId": chainId,
    "verifyingContract": util.normaliseAddress (verifyingContract),
  }


def claimMessage (claimant, amount, root, verifyingContract, chainId):
  """
  Builds the typed-data message for a claim of amount by claimant against
  the given Merkle root.
  """

  return {
    "domain": buildDomain (verifyingContract, chainId),
    "primaryType": "MerkleDropClaim",
    "types": {
      "EIP712Domain": DOMAIN_TYPE,
      "MerkleDropClaim": [
        {"name": "claimant", "type": "address"},
        {"name": "amount", "type": "uint256"},
        {"name": "root", "type": "bytes32"},
      ],
    },
    "message": {
      "claimant": util.normaliseAddress (claimant),
      "amount": util.parseAmount (amount),
      "root": util.parseDigest (root),
    },
  }


def adminMessage (action, payload, nonce, verifyingContract, chainId):
  """
  Builds the typed-data message for an administrative action.  The
  payload is the canonical string form of the action's arguments, the
  nonce is the signer's sequence number for admin actions.
  """

  return {
    "domain": buildDomain (verifyingContract, chainId),
    "primaryType": "AdminAction",
    "types": {
      "EIP712Domain": DOMAIN_TYPE,
      "AdminAction": [
        {"name": "action", "type": "string"},
        {"name": "payload", "type": "string"},
        {"name": "nonce", "type": "uint256"},
      ],
    },
    "message": {
      "action": action,
      "payload": payload,
      "nonce": util.parseAmount (nonce),
    },
  }


def signMessage (privKey, msg):
  acc = Account.from_key (privKey)
  signed = acc.sign_message (encode_typed_data (full_message=msg))
  return bytes (signed.signature)


def recoverSigner (msg, signature):
  """
  Returns the address that signed the typed-data message.  Raises
  InvalidSignature if the signature is malformed.
  """

  if isinstance (signature, str):
    try:
      signature = bytes.fromhex (signature.removeprefix ("0x"))
    except ValueError:
      raise errors.InvalidSignature ("not a hex string")

  try:
    return Account.recover_message (encode_typed_data (full_message=msg),
                                    signature=signature)
  except Exception as exc:
    # eth_keys raises its own exception types for malformed signatures.
    raise errors.InvalidSignature (str (exc)) from exc


def signClaim (privKey, amount, root, verifyingContract, chainId):
  """
  Signs a claim for the account of the given private key.  Returns the
  signature bytes.
  """

  acc = Account.from_key (privKey)
  msg = claimMessage (acc.address, amount, root, verifyingContract, chainId)
  return signMessage (privKey, msg)


def recoverClaimant (signature, claimant, amount, root,
                     verifyingContract, chainId):
  """
  Checks that the claim request was signed by the claimant.  Returns the
  normalised claimant address, raises InvalidSignature otherwise.
  """

  claimant = util.normaliseAddress (claimant)
  msg = claimMessage (claimant, amount, root, verifyingContract, chainId)
  signer = recoverSigner (msg, signature)
  if signer != claimant:
    raise errors.InvalidSignature ("signed by %s, not %s" % (signer, claimant))

  return claimant


def signAdminAction (privKey, action, payload, nonce, verifyingContract,
                     chainId):
  msg = adminMessage (action, payload, nonce, verifyingContract, chainId)
  return signMessage (privKey, msg)


def recoverAdmin (signature, action, payload, nonce, verifyingContract,
                  chainId):
  """
  Returns the address that signed the admin action.  Whether that address
  is allowed to do the action is checked by the ledger.
  """

  msg = adminMessage (action, payload, nonce, verifyingContract, chainId)
  return recoverSigner (msg, signature)
