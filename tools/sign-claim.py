#!/usr/bin/env python3
# Copyright (C) 2024 The Xaya developers

"""
This script signs a claim request for the claim ledger service with
the claimant's private key.
"""

import signing

import argparse


parser = argparse.ArgumentParser ()
parser.add_argument ("--key", required=True,
                     help="Private key of the claimant (hex)")
parser.add_argument ("--amount", required=True,
                     help="Amount to claim in base units")
parser.add_argument ("--root", required=True,
                     help="Merkle root the claim is made against")
parser.add_argument ("--contract", required=True,
                     help="Address of the claim ledger")
parser.add_argument ("--chainid", type=int, required=True,
                     help="Chain ID for the EIP712 signature")
args = parser.parse_args ()

sgn = signing.signClaim (args.key, args.amount, args.root,
                         args.contract, args.chainid)
print ("Signature: 0x%s" % sgn.hex ())
