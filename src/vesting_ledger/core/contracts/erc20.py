"""
ERC20-style fungible token used as the vault's asset collaborator.

The vault only relies on three capabilities, captured by FungibleAsset:
balance_of, transfer and transfer_from. ERC20Token is the in-process
implementation (balances, allowances, Transfer/Approval events) and
ERC20Factory deploys tokens and resolves them by address.

Security features:
- Zero address checks on recipients and spenders
- Balance and allowance underflow prevention
- uint256 bounds on every amount
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..exceptions import TokenError, ValidationError
from ..validation import UINT256_MAX, ZERO_ADDRESS, check_uint, normalize_address

logger = logging.getLogger(__name__)


@runtime_checkable
class FungibleAsset(Protocol):
    """What the vault needs from a token."""

    address: str

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool: ...


@dataclass
class TokenEvent:
    """Represents an ERC20 event."""

    event_type: str  # "Transfer" or "Approval"
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC20Token:
    """
    In-memory ERC20 token.

    The owner may mint; holders may burn their own balance. All state lives
    in plain dicts and round-trips through to_dict/from_dict.
    """

    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0
    address: str = ""
    owner: str = ""

    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)
    events: list[TokenEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.address:
            addr_input = f"{self.name}{self.symbol}{time.time()}{secrets.token_hex(8)}".encode()
            addr_hash = hashlib.sha3_256(addr_input).digest()
            self.address = f"0x{addr_hash[-20:].hex()}"
        self.address = normalize_address(self.address)
        self.owner = normalize_address(self.owner)

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(normalize_address(owner), {}).get(normalize_address(spender), 0)

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Args:
            sender: Address sending tokens (msg.sender)
            recipient: Address receiving tokens
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            TokenError: If the transfer is rejected
        """
        sender_norm = normalize_address(sender)
        recipient_norm = normalize_address(recipient)

        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)

        sender_balance = self.balances.get(sender_norm, 0)
        if sender_balance < amount:
            raise TokenError(
                f"ERC20: transfer amount exceeds balance ({amount} > {sender_balance})"
            )

        self._move(sender_norm, recipient_norm, amount)

        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            }
        )
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Approve spender to move up to amount of owner's tokens."""
        owner_norm = normalize_address(owner)
        spender_norm = normalize_address(spender)

        self._validate_address(spender_norm, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
        self.events.append(TokenEvent("Approval", owner_norm, spender_norm, amount))
        return True

    def transfer_from(
        self, spender: str, from_addr: str, to_addr: str, amount: int
    ) -> bool:
        """
        Transfer tokens using an allowance.

        Args:
            spender: Address executing transfer (msg.sender)
            from_addr: Token owner
            to_addr: Recipient
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            TokenError: If allowance or balance is insufficient
        """
        spender_norm = normalize_address(spender)
        from_norm = normalize_address(from_addr)
        to_norm = normalize_address(to_addr)

        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        current_allowance = self.allowance(from_norm, spender_norm)
        if current_allowance < amount:
            raise TokenError(
                f"ERC20: insufficient allowance ({current_allowance} < {amount})"
            )

        from_balance = self.balances.get(from_norm, 0)
        if from_balance < amount:
            raise TokenError(
                f"ERC20: transfer amount exceeds balance ({amount} > {from_balance})"
            )

        # Unlimited approvals are never decremented
        if current_allowance != UINT256_MAX:
            self.allowances[from_norm][spender_norm] = current_allowance - amount

        self._move(from_norm, to_norm, amount)
        return True

    # ==================== Minting & Burning ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """Mint new tokens (owner only)."""
        if normalize_address(minter) != self.owner:
            raise TokenError("ERC20: caller is not owner")

        to_norm = normalize_address(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        if self.total_supply + amount > UINT256_MAX:
            raise TokenError("ERC20: total supply exceeds uint256")

        self.total_supply += amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self.events.append(TokenEvent("Transfer", ZERO_ADDRESS, to_norm, amount))

        logger.info(
            "ERC20 mint",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )
        return True

    def burn(self, holder: str, amount: int) -> bool:
        """Burn tokens from holder's own balance."""
        holder_norm = normalize_address(holder)
        self._validate_amount(amount)

        balance = self.balances.get(holder_norm, 0)
        if balance < amount:
            raise TokenError(f"ERC20: burn amount exceeds balance ({amount} > {balance})")

        self.balances[holder_norm] = balance - amount
        self.total_supply -= amount
        self.events.append(TokenEvent("Transfer", holder_norm, ZERO_ADDRESS, amount))
        return True

    # ==================== Helpers ====================

    def _move(self, from_norm: str, to_norm: str, amount: int) -> None:
        self.balances[from_norm] = self.balances.get(from_norm, 0) - amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self.events.append(TokenEvent("Transfer", from_norm, to_norm, amount))

    def _validate_address(self, address: str, field_name: str) -> None:
        if not address or address == ZERO_ADDRESS:
            raise TokenError(f"ERC20: {field_name} is zero address")

    def _validate_amount(self, amount: int) -> None:
        try:
            check_uint(amount)
        except ValidationError as exc:
            raise TokenError(f"ERC20: invalid amount ({exc.message})") from exc

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "balances": dict(self.balances),
            "allowances": {k: dict(v) for k, v in self.allowances.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ERC20Token":
        token = cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=data.get("decimals", 18),
            total_supply=data.get("total_supply", 0),
            address=data.get("address", ""),
            owner=data.get("owner", ""),
        )
        token.balances = dict(data.get("balances", {}))
        token.allowances = {k: dict(v) for k, v in data.get("allowances", {}).items()}
        return token


class ERC20Factory:
    """
    Deploys ERC20 tokens and resolves them by address.

    The vault uses a factory as its token registry: schedules and balances
    store the token address, and every transfer looks the token up here.
    """

    def __init__(self) -> None:
        self.deployed_tokens: dict[str, FungibleAsset] = {}

    def create_token(
        self,
        creator: str,
        name: str,
        symbol: str,
        decimals: int = 18,
        initial_supply: int = 0,
        mint_to: str | None = None,
    ) -> ERC20Token:
        """
        Create a new ERC20 token.

        Args:
            creator: Address creating the token (becomes owner)
            name: Token name
            symbol: Token symbol (ticker)
            decimals: Decimal places (default 18)
            initial_supply: Initial supply to mint
            mint_to: Address to mint initial supply to (defaults to creator)

        Returns:
            Deployed ERC20Token instance

        Raises:
            TokenError: If creation fails
        """
        if not name:
            raise TokenError("ERC20Factory: name cannot be empty")
        if not symbol:
            raise TokenError("ERC20Factory: symbol cannot be empty")
        if decimals < 0 or decimals > 18:
            raise TokenError("ERC20Factory: invalid decimals")
        if initial_supply < 0:
            raise TokenError("ERC20Factory: invalid initial supply")

        token = ERC20Token(name=name, symbol=symbol, decimals=decimals, owner=creator)
        if initial_supply > 0:
            token.mint(creator, mint_to or creator, initial_supply)

        self.register(token)

        logger.info(
            "ERC20 token created",
            extra={
                "event": "erc20.created",
                "address": token.address,
                "symbol": symbol,
                "initial_supply": initial_supply,
                "creator": normalize_address(creator)[:10],
            }
        )
        return token

    def register(self, token: FungibleAsset) -> FungibleAsset:
        """Register an externally constructed token under its address."""
        self.deployed_tokens[normalize_address(token.address)] = token
        return token

    def get_token(self, address: str) -> FungibleAsset | None:
        return self.deployed_tokens.get(normalize_address(address))

    def list_tokens(self) -> list[dict[str, Any]]:
        return [
            {
                "address": address,
                "name": getattr(token, "name", ""),
                "symbol": getattr(token, "symbol", ""),
            }
            for address, token in self.deployed_tokens.items()
        ]
