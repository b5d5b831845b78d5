#!/usr/bin/env python3
# Copyright (C) 2024 The Xaya developers

"""
This script takes a Merkle tree constructed from the whitelist, looks up
a particular address, and returns the Merkle proofs for its entries.
"""

import errors
import util
import whitelist

import argparse
import pickle
import sys


parser = argparse.ArgumentParser ()
parser.add_argument ("--load", required=True,
                     help="Load the whitelist Merkle tree from this file")
parser.add_argument ("--address", required=True,
                     help="Address to look up")
args = parser.parse_args ()

with open (args.load, "rb") as f:
  tree = pickle.load (f)

try:
  entries = tree.lookupAddress (args.address)
except errors.InvalidAddress:
  sys.exit ("Invalid address")

if not entries:
  sys.exit ("Address is not whitelisted")

print ("Merkle root: %s" % util.toHex (tree.root))
for e in entries:
  leaf = whitelist.computeLeafHash (e)
  proof = tree.getProof (e)
  assert whitelist.verifyProof (leaf, proof, tree.root)

  print ("\nEntry data:")
  print ("  address: %s" % e.address)
  print ("  amount: %d (%s tokens)" % (e.amount, util.formatAmount (e.amount)))
  print ("  leaf: %s" % util.toHex (leaf))
  print ("Proof: [")
  for p in proof:
    print ("  %s," % util.toHex (p))
  print ("]")
