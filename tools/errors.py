# Copyright (C) 2024 The Xaya developers

"""
Exceptions raised by the Merkle tree builder and the claim ledger.

Every failing operation raises one of these and leaves all state as it
was before the call.  They are grouped into validation, authorisation,
state and proof errors, so that callers (e.g. the HTTP frontend) can map
them to responses without knowing every single case.
"""


class LedgerError (Exception):
  """
  Base class for all errors of the airdrop tools and ledger.
  """


class ValidationError (LedgerError):
  pass


class AuthorizationError (LedgerError):
  pass


class StateError (LedgerError):
  pass


class ProofError (LedgerError):
  pass


class EmptyWhitelist (ValidationError):

  def __init__ (self):
    super ().__init__ ("the whitelist has no entries")


class EntryNotFound (ValidationError):

  def __init__ (self, entry):
    self.entry = entry
    super ().__init__ ("entry %s is not part of the Merkle tree" % (entry,))


class InvalidAmount (ValidationError):

  def __init__ (self, amount):
    self.amount = amount
    super ().__init__ ("invalid amount: %r" % (amount,))


class InvalidAddress (ValidationError):

  def __init__ (self, address):
    self.address = address
    super ().__init__ ("invalid address: %r" % (address,))


class InvalidDigest (ValidationError):

  def __init__ (self, value):
    self.value = value
    super ().__init__ ("invalid 32-byte digest: %r" % (value,))


class MerkleRootNotSet (ValidationError):

  def __init__ (self):
    super ().__init__ ("the Merkle root must not be zero")


class InvalidTokenAddress (ValidationError):

  def __init__ (self, token):
    self.token = token
    super ().__init__ ("invalid token: %r" % (token,))


class UpgradeAmountTooHigh (ValidationError):

  def __init__ (self, amount, ceiling):
    self.amount = amount
    self.ceiling = ceiling
    super ().__init__ ("upgrade amount %d exceeds the maximum of %d"
                       % (amount, ceiling))


class InvalidImplementation (ValidationError):

  def __init__ (self, impl):
    self.implementation = impl
    super ().__init__ ("invalid implementation: %r" % (impl,))


class AccessControlUnauthorized (AuthorizationError):

  def __init__ (self, account, role):
    self.account = account
    self.role = role
    super ().__init__ ("account %s is missing role 0x%s"
                       % (account, role.hex ()))


class AccessControlBadConfirmation (AuthorizationError):

  def __init__ (self, caller, confirmation):
    self.caller = caller
    self.confirmation = confirmation
    super ().__init__ ("%s can only renounce roles for itself, not %s"
                       % (caller, confirmation))


class InvalidSignature (AuthorizationError):

  def __init__ (self, reason):
    super ().__init__ ("invalid signature: %s" % reason)


class AlreadyClaimed (StateError):

  def __init__ (self, account):
    self.account = account
    self.claimed = True
    super ().__init__ ("%s has already claimed" % account)


class ContractPaused (StateError):

  def __init__ (self):
    super ().__init__ ("claiming is paused")


class AlreadyPaused (StateError):

  def __init__ (self):
    super ().__init__ ("the ledger is already paused")


class NotPaused (StateError):

  def __init__ (self):
    super ().__init__ ("the ledger is not paused")


class MintFailed (StateError):

  def __init__ (self, account, amount):
    self.account = account
    self.amount = amount
    super ().__init__ ("minting %d to %s failed" % (amount, account))


class TransferFailed (StateError):

  def __init__ (self, token, to, amount):
    self.token = token
    self.to = to
    self.amount = amount
    super ().__init__ ("transferring %d of token %s to %s failed"
                       % (amount, token, to))


class InsufficientBalance (StateError):

  def __init__ (self, account, balance, needed):
    self.account = account
    self.balance = balance
    self.needed = needed
    super ().__init__ ("%s has balance %d, needs %d"
                       % (account, balance, needed))


class InvalidProof (ProofError):

  def __init__ (self, account, amount):
    self.account = account
    self.amount = amount
    super ().__init__ ("invalid Merkle proof for %s claiming %d"
                       % (account, amount))
