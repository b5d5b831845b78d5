# Copyright (C) 2024 The Xaya developers

"""
This module contains the basic functionality to process the airdrop
whitelist (a JSON list of address and amount records).  It can compute the
claim Merkle tree from it, and also provide the Merkle proofs that the
recipients need to claim their allocation from the ledger.
"""

import errors
import util

from web3 import Web3

import collections
import json


WhitelistEntry = collections.namedtuple ("WhitelistEntry",
                                         ["address", "amount"])


def makeEntry (address, amount):
  """
  Constructs a WhitelistEntry from raw values, normalising the address
  and checking the amount.
  """

  amount = util.parseAmount (amount)
  if amount == 0:
    raise errors.InvalidAmount (amount)

  return WhitelistEntry (util.normaliseAddress (address), amount)


def computeLeafHash (entry):
  """
  Helper method to compute the Merkle leaf hash of a whitelist entry.
  This matches abi.encodePacked (address, uint256) in Solidity.
  """

  return bytes (Web3.solidity_keccak (["address", "uint256"],
                                      [entry.address, entry.amount]))


def hashPairs (pair):
  """
  Helper method to compute the hash of a pair of hashes, i.e. the parent
  node in the Merkle tree for two child nodes.  As per OpenZeppelin's
  MerkleProof contract, we hash the pair in sorted order.
  """

  (a, b) = pair

  if a < b:
    return bytes (Web3.keccak (a + b))

  return bytes (Web3.keccak (b + a))


def processProof (leaf, proof):
  """
  Walks the proof starting from the leaf and returns the computed root.
  """

  cur = leaf
  for sibling in proof:
    cur = hashPairs ((cur, sibling))

  return cur


def verifyProof (leaf, proof, root):
  """
  Returns true if the proof shows that leaf is part of the tree with
  the given root.
  """

  return processProof (leaf, proof) == root


def loadWhitelist (inp):
  """
  Parses the whitelist JSON artifact from the given input stream.
  It must be a list of objects with "address" and "amount" (decimal
  string of base units) fields.
  """

  data = json.load (inp)
  if not isinstance (data, list):
    raise errors.ValidationError ("whitelist must be a JSON list")

  entries = []
  for rec in data:
    if not isinstance (rec, dict) or "address" not in rec \
        or "amount" not in rec:
      raise errors.ValidationError ("malformed whitelist record: %r" % (rec,))
    entries.append (makeEntry (rec["address"], rec["amount"]))

  return entries


class MerkleTree:
  """
  The claim Merkle tree built from a list of whitelist entries.

  Leaf hashes are deduplicated and sorted before the tree is built,
  so that the tree (and not just its root) does not depend on the order of
  the input entries.  If a level has an odd number of nodes, the last one
  is carried up to the next level unchanged.
  """

  def __init__ (self, entries):
    """
    Builds the tree for the given entries.  Raises EmptyWhitelist
    if there are none.
    """

    self.entries = list (entries)
    if not self.entries:
      raise errors.EmptyWhitelist ()

    self.total = 0
    for e in self.entries:
      self.total += e.amount

    self.buildMerkle ()
    self.buildIndices ()

  def buildMerkle (self):
    """
    Builds (or rebuilds) the Merkle tree and root from the list of
    entries in this instance.
    """

    # We store the hashes at each node in the Merkle tree.  This is done
    # row-by-row in an array of levels, where each level is the array
    # of corresponding node hashes.  The deepest level (with the hashes
    # of the leaves) is stored first.

    leafHashes = sorted (set (computeLeafHash (e) for e in self.entries))
    self.levels = [leafHashes]

    while True:
      lastLevel = self.levels[-1]
      if len (lastLevel) == 1:
        break

      nextLevel = [
        hashPairs ((lastLevel[i], lastLevel[i + 1]))
        for i in range (0, len (lastLevel) - 1, 2)
      ]
      if len (lastLevel) % 2 == 1:
        nextLevel.append (lastLevel[-1])

      self.levels.append (nextLevel)

    [self.root] = self.levels[-1]

  def buildIndices (self):
    """
    Builds (or rebuilds) the indices to look up the leaf position of an
    entry and the entries of an address.
    """

    self.indexLeaf = {}
    for ind, h in enumerate (self.levels[0]):
      self.indexLeaf[h] = ind

    self.indexAddress = {}
    for e in self.entries:
      if e.address not in self.indexAddress:
        self.indexAddress[e.address] = []
      if e not in self.indexAddress[e.address]:
        self.indexAddress[e.address].append (e)

  def lookupAddress (self, addr):
    """
    Returns a list of whitelist entries for the given address.
    """

    addr = util.normaliseAddress (addr)
    if addr in self.indexAddress:
      return self.indexAddress[addr]

    return []

  def getProof (self, entry):
    """
    Computes and returns the Merkle proof required for the given entry.
    The proof is returned as array of bytes32 hashes, as expected by
    the OpenZeppelin MerkleProof contract.  Raises EntryNotFound if
    the entry is not part of the tree.
    """

    leaf = computeLeafHash (entry)
    if leaf not in self.indexLeaf:
      raise errors.EntryNotFound (entry)

    index = self.indexLeaf[leaf]
    proof = []
    for lvl in self.levels[:-1]:
      sibling = index ^ 1
      # A node without sibling is carried up, so there is nothing
      # to add to the proof on this level.
      if sibling < len (lvl):
        proof.append (lvl[sibling])
      index >>= 1

    return proof

  def rootArtifact (self):
    """
    Returns the root artifact as JSON-compatible dict.
    """

    return {
      "root": util.toHex (self.root),
      "timestamp": util.isoTimestamp (),
    }

  def proofArtifact (self):
    """
    Returns the mapping of addresses to their entry and proof, as
    distributed to the recipients.  If an address has several entries,
    the last one in the whitelist wins.
    """

    res = {}
    for e in self.entries:
      res[e.address] = {
        "address": e.address,
        "amount": str (e.amount),
        "proof": [util.toHex (p) for p in self.getProof (e)],
      }

    return res


def buildTree (entries):
  """
  Builds the Merkle tree for the entries and returns (root, tree).
  """

  tree = MerkleTree (entries)
  return tree.root, tree


def writeArtifacts (tree, rootFile, proofFile):
  """
  Writes the root and proof artifacts of the tree as JSON files.
  """

  with open (rootFile, "w") as f:
    json.dump (tree.rootArtifact (), f, indent=2)

  with open (proofFile, "w") as f:
    json.dump (tree.proofArtifact (), f, indent=2)
