# Copyright (C) 2024 The Xaya developers

"""
The claim ledger:  It holds the current Merkle root of the airdrop
whitelist, verifies claims against it, makes sure every address claims
only once and mints the claimed tokens through the token collaborator.

The ledger is split into the stable state (LedgerState) and the claim
logic (ClaimLogic), which can be replaced by an upgrader without touching
the state.  All public operations are serialised with a lock and are
atomic:  they either apply all their changes or raise and change nothing.
"""

import errors
import roles
import util
import whitelist

from web3 import Web3

import collections
import functools
import logging
import threading


log = logging.getLogger (__name__)

# Maximum value that can be configured as upgrade amount (1M tokens).
MAX_UPGRADE_AMOUNT = 1000000 * 10**util.DECIMALS

Event = collections.namedtuple ("Event", ["name", "args"])
ClaimStats = collections.namedtuple ("ClaimStats",
                                     ["totalClaimed", "totalClaimers"])


class LedgerState:
  """
  All persistent data of the ledger.  Implementation swaps keep the very
  same instance, so nothing in here is ever reset by an upgrade.
  """

  def __init__ (self, token, merkleRoot, emit):
    self.token = token
    self.merkleRoot = merkleRoot
    self.claimed = {}
    self.totalClaimed = 0
    self.totalClaimers = 0
    self.upgradeAmount = 0
    self.paused = False
    self.roles = roles.AccessControl (emit)


class ClaimLogic:
  """
  The replaceable part of the ledger, i.e. how leaves are computed and
  proofs are checked.  Subclasses can override these for new versions.
  """

  version = "V1"

  def computeLeaf (self, account, amount):
    return whitelist.computeLeafHash (
        whitelist.WhitelistEntry (account, amount))

  def verify (self, leaf, proof, root):
    return whitelist.verifyProof (leaf, proof, root)


def serialised (fcn):
  """
  Decorator for public ledger operations, which runs them while holding
  the ledger lock.
  """

  @functools.wraps (fcn)
  def wrapper (self, *args, **kwargs):
    with self.lock:
      return fcn (self, *args, **kwargs)

  return wrapper


class ClaimLedger:
  """
  The claim ledger itself.  The caller of every operation is passed
  explicitly as first argument (the address on whose behalf the operation
  is done), the transport is responsible for authenticating it.
  """

  def __init__ (self, token, merkleRoot, deployer, registry=None,
                address=None, implementation=None):
    """
    Sets up the ledger for the given token and initial root.  The deployer
    gets the admin, pauser and upgrader roles.
    """

    if token is None or getattr (token, "address", None) is None:
      raise errors.InvalidTokenAddress (token)
    merkleRoot = util.parseDigest (merkleRoot)
    if merkleRoot == util.ZERO_HASH:
      raise errors.MerkleRootNotSet ()

    if implementation is None:
      implementation = ClaimLogic ()
    self.checkImplementation (implementation)

    if address is None:
      h = bytes (Web3.keccak (text="ClaimLedger:%s" % token.address))
      address = "0x" + h[-20:].hex ()

    self.address = util.normaliseAddress (address)
    self.registry = registry
    self.implementation = implementation
    self.events = []
    self.lock = threading.RLock ()

    self.state = LedgerState (token, merkleRoot, self.emit)
    for r in [roles.DEFAULT_ADMIN_ROLE, roles.PAUSER_ROLE,
              roles.UPGRADER_ROLE]:
      self.state.roles._grant (r, deployer, deployer)

  def emit (self, name, **args):
    ev = Event (name, args)
    self.events.append (ev)
    log.info ("%s %r", name, args)

  @staticmethod
  def checkImplementation (impl):
    if not isinstance (impl, ClaimLogic):
      raise errors.InvalidImplementation (impl)

  # Read-only accessors.

  @property
  def token (self):
    return self.state.token

  @property
  def merkleRoot (self):
    return self.state.merkleRoot

  @property
  def upgradeAmount (self):
    return self.state.upgradeAmount

  @property
  def version (self):
    return self.implementation.version

  @serialised
  def paused (self):
    return self.state.paused

  @serialised
  def isClaimed (self, account):
    return self.state.claimed.get (util.normaliseAddress (account), False)

  @serialised
  def getClaimStats (self):
    return ClaimStats (self.state.totalClaimed, self.state.totalClaimers)

  # Claiming.

  @serialised
  def claim (self, caller, amount, proof):
    """
    Claims amount tokens for caller, proven by the given Merkle proof
    against the current root.  On success, the tokens are minted to the
    caller and the claim is recorded.
    """

    st = self.state
    caller = util.normaliseAddress (caller)

    if st.paused:
      raise errors.ContractPaused ()

    amount = util.parseAmount (amount)
    if amount == 0:
      raise errors.InvalidAmount (amount)

    if st.claimed.get (caller, False):
      raise errors.AlreadyClaimed (caller)

    try:
      proof = [util.parseDigest (p) for p in proof]
    except errors.InvalidDigest:
      log.debug ("Malformed proof from %s", caller)
      raise errors.InvalidProof (caller, amount)

    leaf = self.implementation.computeLeaf (caller, amount)
    if not self.implementation.verify (leaf, proof, st.merkleRoot):
      log.debug ("Proof from %s for %d does not match root %s",
                 caller, amount, util.toHex (st.merkleRoot))
      raise errors.InvalidProof (caller, amount)

    # Nothing is recorded unless the mint succeeded.
    if not st.token.mint (self.address, caller, amount):
      raise errors.MintFailed (caller, amount)

    st.claimed[caller] = True
    st.totalClaimers += 1
    st.totalClaimed += amount
    self.emit ("Claimed", account=caller, amount=amount)

  # Administration.

  @serialised
  def setMerkleRoot (self, caller, newRoot):
    st = self.state
    st.roles.checkRole (roles.DEFAULT_ADMIN_ROLE, caller)

    newRoot = util.parseDigest (newRoot)
    if newRoot == util.ZERO_HASH:
      raise errors.MerkleRootNotSet ()

    oldRoot = st.merkleRoot
    st.merkleRoot = newRoot
    self.emit ("MerkleRootUpdated", oldRoot=oldRoot, newRoot=newRoot)

  @serialised
  def setUpgradeAmount (self, caller, amount):
    """
    Sets the upgrade amount, a threshold used by external tooling.  It is
    not used by the claim logic itself.
    """

    st = self.state
    st.roles.checkRole (roles.DEFAULT_ADMIN_ROLE, caller)

    amount = util.parseAmount (amount)
    if amount > MAX_UPGRADE_AMOUNT:
      raise errors.UpgradeAmountTooHigh (amount, MAX_UPGRADE_AMOUNT)

    st.upgradeAmount = amount
    self.emit ("UpgradeAmountUpdated", amount=amount)

  @serialised
  def pause (self, caller):
    st = self.state
    st.roles.checkRole (roles.PAUSER_ROLE, caller)
    if st.paused:
      raise errors.AlreadyPaused ()

    st.paused = True
    self.emit ("Paused", account=util.normaliseAddress (caller))

  @serialised
  def unpause (self, caller):
    st = self.state
    st.roles.checkRole (roles.PAUSER_ROLE, caller)
    if not st.paused:
      raise errors.NotPaused ()

    st.paused = False
    self.emit ("Unpaused", account=util.normaliseAddress (caller))

  @serialised
  def emergencyWithdraw (self, caller, tokenAddress, amount):
    """
    Transfers tokens held by the ledger itself (e.g. sent to it by
    mistake) to the calling admin.
    """

    st = self.state
    st.roles.checkRole (roles.DEFAULT_ADMIN_ROLE, caller)

    amount = util.parseAmount (amount)
    if amount == 0:
      raise errors.InvalidAmount (amount)

    token = self.resolveToken (tokenAddress)
    caller = util.normaliseAddress (caller)
    if not token.transfer (self.address, caller, amount):
      raise errors.TransferFailed (token.address, caller, amount)

    self.emit ("EmergencyWithdraw", token=token.address, amount=amount)

  def resolveToken (self, tokenAddress):
    try:
      tokenAddress = util.normaliseAddress (tokenAddress)
    except errors.InvalidAddress:
      raise errors.InvalidTokenAddress (tokenAddress)

    if tokenAddress == util.normaliseAddress (self.state.token.address):
      return self.state.token
    if self.registry is None:
      raise errors.InvalidTokenAddress (tokenAddress)

    return self.registry.lookup (tokenAddress)

  # Roles.

  @serialised
  def hasRole (self, role, account):
    return self.state.roles.hasRole (role, account)

  @serialised
  def getRoleAdmin (self, role):
    return self.state.roles.getRoleAdmin (role)

  @serialised
  def grantRole (self, caller, role, account):
    self.state.roles.grantRole (caller, role, account)

  @serialised
  def revokeRole (self, caller, role, account):
    self.state.roles.revokeRole (caller, role, account)

  @serialised
  def renounceRole (self, caller, role, callerConfirmation):
    self.state.roles.renounceRole (caller, role, callerConfirmation)

  # Upgrades.

  @serialised
  def upgradeTo (self, caller, newImplementation):
    """
    Replaces the claim logic.  The state is kept as is.
    """

    self.state.roles.checkRole (roles.UPGRADER_ROLE, caller)
    self.checkImplementation (newImplementation)

    self.implementation = newImplementation
    self.emit ("Upgraded", version=newImplementation.version)
