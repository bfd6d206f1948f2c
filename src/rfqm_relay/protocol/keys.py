"""Worker key derivation from a BIP-39 mnemonic.

Workers are indexed accounts on the standard Ethereum path
``m/44'/60'/0'/0/{index}``.
"""

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .errors import InvalidIndex

DERIVATION_PATH_PREFIX = "m/44'/60'/0'/0/"

# First hardened child index; worker indices stay below it
HARDENED_OFFSET = 2**31

Account.enable_unaudited_hdwallet_features()


def get_path_by_index(index: int) -> str:
    """Return the derivation path for a worker index.

    Raises:
        InvalidIndex: If index is not an integer in [0, 2**31)
    """
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < HARDENED_OFFSET:
        raise InvalidIndex(
            f"Invalid index: {index!r}. Must be an integer in [0, {HARDENED_OFFSET})"
        )
    return f"{DERIVATION_PATH_PREFIX}{index}"


def derive_account(mnemonic: str, index: int) -> LocalAccount:
    """Derive the worker account at ``index``."""
    path = get_path_by_index(index)
    return Account.from_mnemonic(mnemonic, account_path=path)


def derive_private_key(mnemonic: str, index: int) -> bytes:
    """Derive the 32-byte private key of the worker at ``index``."""
    return bytes(derive_account(mnemonic, index).key)


def derive_address(mnemonic: str, index: int) -> str:
    """Derive the checksummed address of the worker at ``index``."""
    return derive_account(mnemonic, index).address
