# Copyright (C) 2024 The Xaya developers

"""
Shared fixtures for the airdrop tests.
"""

import ledger
import roles
import tokens
import whitelist

from eth_account import Account

import pytest


TOKEN_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
OTHER_TOKEN_ADDRESS = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"

# Allocations as in the basic test scenario (1000, 1200 and 1400 tokens).
AMOUNTS = [
  1000 * 10**18,
  1200 * 10**18,
  1400 * 10**18,
]


def makeAccount (i):
  """
  Returns a deterministic test account with the given index.
  """

  return Account.from_key ((i + 1).to_bytes (32, "big"))


@pytest.fixture
def accounts ():
  return [makeAccount (i) for i in range (8)]


@pytest.fixture
def owner (accounts):
  return accounts[0].address


@pytest.fixture
def users (accounts):
  return [a.address for a in accounts[1:]]


@pytest.fixture
def entries (users):
  return [
    whitelist.WhitelistEntry (users[i], AMOUNTS[i])
    for i in range (len (AMOUNTS))
  ]


@pytest.fixture
def tree (entries):
  return whitelist.MerkleTree (entries)


@pytest.fixture
def token (owner):
  return tokens.MintableToken (TOKEN_ADDRESS, owner)


@pytest.fixture
def claimLedger (token, tree, owner):
  """
  Ledger for the test whitelist, with minter rights on the token.
  """

  res = ledger.ClaimLedger (token, tree.root, owner)
  token.grantRole (owner, roles.MINTER_ROLE, res.address)
  return res
