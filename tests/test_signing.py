# Copyright (C) 2024 The Xaya developers

"""
Tests for the EIP712 request signatures.
"""

import errors
import signing

import pytest


CONTRACT = "0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0"
CHAIN_ID = 1337
ROOT = "0x" + "ab" * 32


def test_claimRoundtrip (accounts):
  acc = accounts[1]
  sgn = signing.signClaim (acc.key, 1000, ROOT, CONTRACT, CHAIN_ID)

  res = signing.recoverClaimant (sgn, acc.address.lower (), "1000", ROOT,
                                 CONTRACT, CHAIN_ID)
  assert res == acc.address

  res = signing.recoverClaimant ("0x" + sgn.hex (), acc.address, 1000, ROOT,
                                 CONTRACT, CHAIN_ID)
  assert res == acc.address


@pytest.mark.parametrize ("amount,root,contract,chainId", [
  (1001, ROOT, CONTRACT, CHAIN_ID),
  (1000, "0x" + "cd" * 32, CONTRACT, CHAIN_ID),
  (1000, ROOT, "0x5FbDB2315678afecb367f032d93F642f64180aa3", CHAIN_ID),
  (1000, ROOT, CONTRACT, 1),
])
def test_claimMismatch (accounts, amount, root, contract, chainId):
  acc = accounts[1]
  sgn = signing.signClaim (acc.key, 1000, ROOT, CONTRACT, CHAIN_ID)

  with pytest.raises (errors.InvalidSignature):
    signing.recoverClaimant (sgn, acc.address, amount, root,
                             contract, chainId)


def test_claimOtherSigner (accounts):
  sgn = signing.signClaim (accounts[2].key, 1000, ROOT, CONTRACT, CHAIN_ID)

  with pytest.raises (errors.InvalidSignature):
    signing.recoverClaimant (sgn, accounts[1].address, 1000, ROOT,
                             CONTRACT, CHAIN_ID)


@pytest.mark.parametrize ("sgn", ["0x1234", "not hex", b"\x00" * 65])
def test_malformedSignature (accounts, sgn):
  with pytest.raises (errors.InvalidSignature):
    signing.recoverClaimant (sgn, accounts[1].address, 1000, ROOT,
                             CONTRACT, CHAIN_ID)


def test_adminAction (accounts):
  acc = accounts[0]
  payload = '{"root":"%s"}' % ROOT
  sgn = signing.signAdminAction (acc.key, "setMerkleRoot", payload, 3,
                                 CONTRACT, CHAIN_ID)

  assert signing.recoverAdmin (sgn, "setMerkleRoot", payload, 3,
                               CONTRACT, CHAIN_ID) == acc.address
  assert signing.recoverAdmin (sgn, "setMerkleRoot", payload, "3",
                               CONTRACT, CHAIN_ID) == acc.address
  assert signing.recoverAdmin (sgn, "pause", payload, 3,
                               CONTRACT, CHAIN_ID) != acc.address
  assert signing.recoverAdmin (sgn, "setMerkleRoot", payload, 4,
                               CONTRACT, CHAIN_ID) != acc.address
