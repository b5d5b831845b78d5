# Copyright (C) 2024 The Xaya developers

"""
Role-based access control in the style of OpenZeppelin's AccessControl.

Each role is a 32-byte identifier and has an admin role, whose holders
may grant and revoke it.  By default the admin of every role is
DEFAULT_ADMIN_ROLE (which administers itself).
"""

import errors
import util

from web3 import Web3

import logging


log = logging.getLogger (__name__)

DEFAULT_ADMIN_ROLE = b"\0" * 32
PAUSER_ROLE = bytes (Web3.keccak (text="PAUSER_ROLE"))
UPGRADER_ROLE = bytes (Web3.keccak (text="UPGRADER_ROLE"))
MINTER_ROLE = bytes (Web3.keccak (text="MINTER_ROLE"))

ROLE_NAMES = {
  DEFAULT_ADMIN_ROLE: "DEFAULT_ADMIN_ROLE",
  PAUSER_ROLE: "PAUSER_ROLE",
  UPGRADER_ROLE: "UPGRADER_ROLE",
  MINTER_ROLE: "MINTER_ROLE",
}


def roleName (role):
  """
  Returns a readable name for a role identifier.
  """

  return ROLE_NAMES.get (role, "0x" + role.hex ())


def parseRole (val):
  """
  Parses a role given either by its name (e.g. "PAUSER_ROLE") or as
  32-byte hex identifier.
  """

  for role, name in ROLE_NAMES.items ():
    if val == name:
      return role

  return util.parseDigest (val)


class AccessControl:
  """
  Holds the role memberships and role admins.  Events are reported
  through the emit callback, which is called as emit (name, **args).
  """

  def __init__ (self, emit):
    self.emit = emit
    self.members = {}
    self.admins = {}

  def hasRole (self, role, account):
    account = util.normaliseAddress (account)
    return account in self.members.get (role, set ())

  def getRoleAdmin (self, role):
    return self.admins.get (role, DEFAULT_ADMIN_ROLE)

  def checkRole (self, role, account):
    """
    Raises AccessControlUnauthorized unless account holds role.  This is
    the check done at the start of every gated operation.
    """

    if not self.hasRole (role, account):
      log.debug ("%s lacks %s", account, roleName (role))
      raise errors.AccessControlUnauthorized (account, role)

  def grantRole (self, caller, role, account):
    self.checkRole (self.getRoleAdmin (role), caller)
    self._grant (role, account, caller)

  def revokeRole (self, caller, role, account):
    self.checkRole (self.getRoleAdmin (role), caller)
    self._revoke (role, account, caller)

  def renounceRole (self, caller, role, callerConfirmation):
    """
    Lets the caller give up one of their own roles.  The confirmation
    must be the caller's own address.
    """

    caller = util.normaliseAddress (caller)
    if util.normaliseAddress (callerConfirmation) != caller:
      raise errors.AccessControlBadConfirmation (caller, callerConfirmation)

    self._revoke (role, caller, caller)

  def setRoleAdmin (self, role, adminRole):
    """
    Changes the admin role of a role.  This is not gated itself, it is
    meant to be called while setting up the owner of this instance.
    """

    previous = self.getRoleAdmin (role)
    self.admins[role] = adminRole
    self.emit ("RoleAdminChanged", role=role, previousAdminRole=previous,
               newAdminRole=adminRole)

  def _grant (self, role, account, sender):
    """
    Grants the role without any authorisation check.  Returns true if
    the account did not have the role before.
    """

    account = util.normaliseAddress (account)
    holders = self.members.setdefault (role, set ())
    if account in holders:
      return False

    holders.add (account)
    self.emit ("RoleGranted", role=role, account=account,
               sender=util.normaliseAddress (sender))
    return True

  def _revoke (self, role, account, sender):
    account = util.normaliseAddress (account)
    holders = self.members.get (role, set ())
    if account not in holders:
      return False

    holders.remove (account)
    self.emit ("RoleRevoked", role=role, account=account,
               sender=util.normaliseAddress (sender))
    return True
