"""Account configuration loading."""

from stellar_multisig.features.account.service import AccountService

__all__ = ["AccountService"]
