"""Meta-Transaction building and EIP-712 signing.

A meta-transaction wraps a ``fillRfqOrder`` call so that a worker account
can submit it on behalf of the taker. The taker signs the envelope with
EIP-712 against the exchange proxy domain.
"""

import time
from typing import Any, Callable, Dict, Optional, TypedDict

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import keccak

from .codec import encode_fill_call
from .types import (
    META_TRANSACTION_TYPES,
    FillOrder,
    MetaTransaction,
    Signature,
    SignatureType,
)
from .utils import MAX_GAS_PRICE, MAX_UINT128, MIN_GAS_PRICE, NULL_ADDRESS, ZERO, checksum

SaltClock = Callable[[], int]


def default_salt_clock() -> int:
    """Wall-clock time in nanoseconds."""
    return time.time_ns()


class EIP712Domain(TypedDict):
    """EIP-712 domain separator."""

    name: str
    version: str
    chainId: int
    verifyingContract: str


def validate_gas_price_bounds(
    min_gas_price: int,
    max_gas_price: int,
    ceiling: int = MAX_GAS_PRICE,
) -> None:
    """Check ``MIN_GAS_PRICE <= min_gas_price <= max_gas_price <= ceiling``.

    Raises:
        ValueError: If the bounds are out of order or out of range
    """
    if min_gas_price < MIN_GAS_PRICE:
        raise ValueError(f"Invalid min_gas_price: {min_gas_price}. Must be >= 0")
    if max_gas_price < min_gas_price:
        raise ValueError(
            f"Invalid max_gas_price: {max_gas_price}. Must be >= min_gas_price ({min_gas_price})"
        )
    if max_gas_price > ceiling:
        raise ValueError(f"Invalid max_gas_price: {max_gas_price}. Maximum: {ceiling}")


def build_fill_meta_transaction(
    order: FillOrder,
    signature: Signature,
    taker: str,
    taker_amount: int,
    chain_id: int,
    verifying_contract: str,
    *,
    min_gas_price: int = MIN_GAS_PRICE,
    max_gas_price: int = MAX_GAS_PRICE,
    clock: Optional[SaltClock] = None,
) -> MetaTransaction:
    """Wrap a fillRfqOrder call in a meta-transaction signed by the taker.

    Args:
        order: RFQ order to fill
        signature: Maker's signature over the order
        taker: Taker address, becomes the meta-transaction signer
        taker_amount: Taker token amount to fill
        chain_id: Chain the exchange proxy lives on
        verifying_contract: Exchange proxy address
        min_gas_price: Lowest gas price the relayer may use (wei)
        max_gas_price: Highest gas price the relayer may use (wei)
        clock: Salt source (default: nanosecond wall clock)

    Returns:
        MetaTransaction expiring together with the order

    Raises:
        ValueError: If an address, the taker amount or the gas price bounds
            are invalid
    """
    if taker_amount < 0 or taker_amount > MAX_UINT128:
        raise ValueError(f"Invalid taker_amount: {taker_amount}. Must fit in uint128")
    validate_gas_price_bounds(min_gas_price, max_gas_price)
    signer = checksum(taker, "taker")
    proxy = checksum(verifying_contract, "verifying_contract")

    call_data = encode_fill_call(order, signature, taker_amount)
    salt = (clock or default_salt_clock)()

    return MetaTransaction(
        signer=signer,
        sender=NULL_ADDRESS,
        min_gas_price=min_gas_price,
        max_gas_price=max_gas_price,
        expiration_time_seconds=order.expiry,
        salt=salt,
        call_data=call_data,
        value=ZERO,
        fee_token=NULL_ADDRESS,
        fee_amount=ZERO,
        chain_id=chain_id,
        verifying_contract=proxy,
    )


def create_eip712_domain(chain_id: int, verifying_contract: str) -> EIP712Domain:
    """Create the EIP-712 domain of the exchange proxy.

    Raises:
        ValueError: If the verifying contract address is invalid
    """
    return {
        "name": "ZeroEx",
        "version": "1.0.0",
        "chainId": chain_id,
        "verifyingContract": checksum(verifying_contract, "verifying_contract"),
    }


def _message(meta_tx: MetaTransaction) -> Dict[str, Any]:
    return {
        "signer": meta_tx.signer,
        "sender": meta_tx.sender,
        "minGasPrice": meta_tx.min_gas_price,
        "maxGasPrice": meta_tx.max_gas_price,
        "expirationTimeSeconds": meta_tx.expiration_time_seconds,
        "salt": meta_tx.salt,
        "callData": meta_tx.call_data,
        "value": meta_tx.value,
        "feeToken": meta_tx.fee_token,
        "feeAmount": meta_tx.fee_amount,
    }


def _signable(meta_tx: MetaTransaction) -> SignableMessage:
    return encode_typed_data(
        domain_data=create_eip712_domain(meta_tx.chain_id, meta_tx.verifying_contract),
        message_types=META_TRANSACTION_TYPES,
        message_data=_message(meta_tx),
    )


def get_meta_transaction_hash(meta_tx: MetaTransaction) -> str:
    """Return the EIP-712 digest of a meta-transaction as a 0x hex string."""
    signable = _signable(meta_tx)
    digest = keccak(b"\x19" + signable.version + signable.header + signable.body)
    return "0x" + digest.hex()


def sign_meta_transaction(private_key: str, meta_tx: MetaTransaction) -> Signature:
    """Sign a meta-transaction with EIP-712 using a private key.

    Args:
        private_key: Private key (hex string with or without 0x prefix)
        meta_tx: Meta-transaction to sign

    Returns:
        EIP712 Signature
    """
    account = Account.from_key(private_key)
    signed_message = account.sign_typed_data(
        domain_data=create_eip712_domain(meta_tx.chain_id, meta_tx.verifying_contract),
        message_types=META_TRANSACTION_TYPES,
        message_data=_message(meta_tx),
    )
    return Signature(
        signature_type=SignatureType.EIP712,
        v=signed_message.v,
        r=signed_message.r.to_bytes(32, "big"),
        s=signed_message.s.to_bytes(32, "big"),
    )


def recover_meta_transaction_signer(meta_tx: MetaTransaction, signature: Signature) -> str:
    """Recover the address that produced an EIP712 meta-transaction signature.

    Raises:
        ValueError: If the signature is not an EIP712 signature
    """
    if signature.signature_type != SignatureType.EIP712:
        raise ValueError(
            f"Invalid signature type: {signature.signature_type}. Expected EIP712"
        )
    return Account.recover_message(
        _signable(meta_tx),
        vrs=(
            signature.v,
            int.from_bytes(signature.r, "big"),
            int.from_bytes(signature.s, "big"),
        ),
    )
