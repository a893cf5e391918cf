from typing import Any, Dict, List, Optional

Wallet = Dict[str, Any]


def normalize_wallet(wallet: Optional[Wallet]) -> Optional[Wallet]:
    """Normalize a single wallet record.

    Currently an identity transform that returns a shallow copy; it is the
    one place to rewrite avatar URLs or default fields later. Null records
    pass through untouched and no fields are ever invented.
    """
    if not wallet:
        return wallet
    if isinstance(wallet, dict):
        return dict(wallet)
    return wallet


def normalize_list(wallets: Any) -> List[Optional[Wallet]]:
    """Normalize every record, keeping order. Non-list input yields []."""
    if not isinstance(wallets, (list, tuple)):
        return []
    return [normalize_wallet(wallet) for wallet in wallets]


def get_wallet_chain_type(wallet: Optional[Wallet]) -> str:
    if not wallet:
        return ""
    return (wallet.get("chain") or "").upper()


def is_evm_chain(chain_type: Optional[str]) -> bool:
    return (chain_type or "").upper() in ("ETH", "EVM", "BASE")


def wallet_id_matches(wallet: Optional[Wallet], wallet_id: Optional[str]) -> bool:
    """Compare a wallet against a persisted (string) id."""
    if not wallet or wallet_id is None or not isinstance(wallet, dict):
        return False
    return str(wallet.get("id")) == str(wallet_id).strip()
