#!/usr/bin/env python3
# Copyright (C) 2024 The Xaya developers

"""
This script computes the Merkle root of the airdrop whitelist, which is
set in the claim ledger, and the proofs that are handed out to the
recipients.  The whitelist is a JSON list of {address, amount} records
with the amount given in base units as decimal string.
"""

import errors
import util
import whitelist

import argparse
import pickle
import sys


parser = argparse.ArgumentParser ()
parser.add_argument ("--whitelist", default="",
                     help="Read the whitelist from this file (default: stdin)")
parser.add_argument ("--root-out", default="root.json",
                     help="Write the root artifact to this file")
parser.add_argument ("--proof-out", default="proof.json",
                     help="Write the proof artifact to this file")
parser.add_argument ("--dump", default="",
                     help="Write the generated Merkle tree to this file")
args = parser.parse_args ()

try:
  if args.whitelist != "":
    with open (args.whitelist) as f:
      entries = whitelist.loadWhitelist (f)
  else:
    entries = whitelist.loadWhitelist (sys.stdin)
  tree = whitelist.MerkleTree (entries)
except errors.ValidationError as exc:
  sys.exit ("Invalid whitelist: %s" % exc)

whitelist.writeArtifacts (tree, args.root_out, args.proof_out)

if args.dump != "":
  with open (args.dump, "wb") as f:
    pickle.dump (tree, f)

print ("Number of entries: %d" % len (tree.entries))
print ("Total amount: %s tokens" % util.formatAmount (tree.total))
print ("Merkle tree depth: %d levels" % len (tree.levels))
print ("Merkle root hash: %s" % util.toHex (tree.root))
print ("Files generated:")
print ("  root: %s" % args.root_out)
print ("  proofs: %s" % args.proof_out)
