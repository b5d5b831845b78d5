# Copyright (C) 2024 The Xaya developers

"""
Token collaborators of the claim ledger.  The ledger only needs a token
that can mint to an address, and (for the emergency recovery) transfer
its own holdings.  MintableToken is a simple in-memory ERC20-like
implementation, ContractToken drives a deployed token contract via web3.
"""

import errors
import roles
import util

import logging


log = logging.getLogger (__name__)


class MintableToken:
  """
  In-memory mintable token.  Minting and burning require MINTER_ROLE,
  which the deployer holds initially (together with the admin role).
  """

  def __init__ (self, address, deployer, name="MyMintableToken",
                symbol="MTK", decimals=util.DECIMALS):
    self.address = util.normaliseAddress (address)
    self.name = name
    self.symbol = symbol
    self.decimals = decimals

    self.balances = {}
    self.totalSupply = 0
    self.events = []

    self.roles = roles.AccessControl (self.emit)
    self.roles._grant (roles.DEFAULT_ADMIN_ROLE, deployer, deployer)
    self.roles._grant (roles.MINTER_ROLE, deployer, deployer)

  def emit (self, name, **args):
    self.events.append ((name, args))

  def balanceOf (self, account):
    return self.balances.get (util.normaliseAddress (account), 0)

  def grantRole (self, caller, role, account):
    self.roles.grantRole (caller, role, account)

  def hasRole (self, role, account):
    return self.roles.hasRole (role, account)

  def mint (self, caller, to, amount):
    """
    Mints amount new tokens to the given address.  Returns True on success,
    raises if the caller is not a minter or the receiver is invalid.
    """

    self.roles.checkRole (roles.MINTER_ROLE, caller)
    to = util.normaliseAddress (to)
    if to == util.ZERO_ADDRESS:
      raise errors.InvalidAddress (to)
    amount = util.parseAmount (amount)

    self.balances[to] = self.balanceOf (to) + amount
    self.totalSupply += amount
    self.emit ("Transfer", sender=util.ZERO_ADDRESS, to=to, value=amount)
    return True

  def burn (self, caller, account, amount):
    self.roles.checkRole (roles.MINTER_ROLE, caller)
    account = util.normaliseAddress (account)
    if account == util.ZERO_ADDRESS:
      raise errors.InvalidAddress (account)
    amount = util.parseAmount (amount)

    balance = self.balanceOf (account)
    if balance < amount:
      raise errors.InsufficientBalance (account, balance, amount)

    self.balances[account] = balance - amount
    self.totalSupply -= amount
    self.emit ("Transfer", sender=account, to=util.ZERO_ADDRESS, value=amount)
    return True

  def transfer (self, caller, to, amount):
    caller = util.normaliseAddress (caller)
    to = util.normaliseAddress (to)
    if to == util.ZERO_ADDRESS:
      raise errors.InvalidAddress (to)
    amount = util.parseAmount (amount)

    balance = self.balanceOf (caller)
    if balance < amount:
      raise errors.InsufficientBalance (caller, balance, amount)

    self.balances[caller] = balance - amount
    self.balances[to] = self.balanceOf (to) + amount
    self.emit ("Transfer", sender=caller, to=to, value=amount)
    return True


class ContractToken:
  """
  Token backed by a deployed contract (a web3 contract instance with the
  MyMintableToken ABI).  Calls are sent as transactions from the caller
  address, which must be unlocked on the connected node.
  """

  def __init__ (self, contract, gas=200000):
    self.contract = contract
    self.address = util.normaliseAddress (contract.address)
    self.gas = gas

  def sendTransaction (self, caller, fcn):
    """
    Sends the transaction for a prepared contract function call and waits
    for it to be mined.  Returns true if it succeeded.
    """

    w3 = self.contract.w3
    txid = fcn.transact ({
      "from": util.normaliseAddress (caller),
      "gas": self.gas,
    })
    receipt = w3.eth.wait_for_transaction_receipt (txid)

    if receipt["status"] != 1:
      log.warning ("Transaction %s reverted", txid.hex ())
      return False

    return True

  def balanceOf (self, account):
    return self.contract.functions.balanceOf (
        util.normaliseAddress (account)).call ()

  def mint (self, caller, to, amount):
    fcn = self.contract.functions.mint (util.normaliseAddress (to),
                                        util.parseAmount (amount))
    return self.sendTransaction (caller, fcn)

  def transfer (self, caller, to, amount):
    fcn = self.contract.functions.transfer (util.normaliseAddress (to),
                                            util.parseAmount (amount))
    return self.sendTransaction (caller, fcn)


class TokenRegistry:
  """
  Lookup of known tokens by their address, used to resolve the token
  identifier passed to the emergency withdrawal.
  """

  def __init__ (self, tokens=()):
    self.tokens = {}
    for t in tokens:
      self.register (t)

  def register (self, token):
    self.tokens[util.normaliseAddress (token.address)] = token

  def lookup (self, address):
    """
    Returns the token for the given address.  Raises InvalidTokenAddress
    if it is unknown.
    """

    try:
      address = util.normaliseAddress (address)
    except errors.InvalidAddress:
      raise errors.InvalidTokenAddress (address)

    if address not in self.tokens:
      raise errors.InvalidTokenAddress (address)

    return self.tokens[address]
