#!/usr/bin/env python3
# Copyright (C) 2024 The Xaya developers

"""
Some utility methods for the scripts and the claim ledger.
"""

import errors

from web3 import Web3

from datetime import datetime, timezone
from decimal import Decimal


# Number of decimals of the distributed token.
DECIMALS = 18

# Largest value that fits into an uint256.
MAX_UINT256 = 2**256 - 1

ZERO_HASH = b"\0" * 32
ZERO_ADDRESS = "0x" + "00" * 20


def formatAmount (val):
  """
  Formats a token value (in base units) as decimal string.
  """

  return format (Decimal (val).scaleb (-DECIMALS).normalize (), "f")


def parseAmount (val):
  """
  Parses an amount given either as int or as decimal string of base units.
  Raises InvalidAmount if it is not a valid uint256.
  """

  if isinstance (val, bool):
    raise errors.InvalidAmount (val)

  if isinstance (val, str):
    digits = val.strip ()
    if not (digits.isascii () and digits.isdigit ()):
      raise errors.InvalidAmount (val)
    val = int (digits)

  if not isinstance (val, int) or val < 0 or val > MAX_UINT256:
    raise errors.InvalidAmount (val)

  return val


def normaliseAddress (addr):
  """
  Returns the checksummed form of a hex address (with or without 0x).
  """

  if not isinstance (addr, str):
    raise errors.InvalidAddress (addr)

  addr = addr.strip ()
  if not addr.startswith ("0x"):
    addr = "0x" + addr

  if not Web3.is_address (addr):
    raise errors.InvalidAddress (addr)

  return Web3.to_checksum_address (addr)


def parseDigest (val):
  """
  Converts a 32-byte digest given as hex string (or already as bytes)
  to bytes.
  """

  if isinstance (val, (bytes, bytearray)):
    res = bytes (val)
  elif isinstance (val, str):
    try:
      res = Web3.to_bytes (hexstr=val)
    except ValueError:
      raise errors.InvalidDigest (val)
  else:
    raise errors.InvalidDigest (val)

  if len (res) != 32:
    raise errors.InvalidDigest (val)

  return res


def toHex (digest):
  """
  Formats a digest as 0x-prefixed lowercase hex.
  """

  return "0x" + digest.hex ()


def isoTimestamp ():
  """
  Returns the current time as ISO-8601 string (UTC).
  """

  return datetime.now (timezone.utc).isoformat ()
