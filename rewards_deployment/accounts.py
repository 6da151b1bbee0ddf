from typing import Optional

from ape import accounts
from ape.api import AccountAPI
from ape_accounts import import_account_from_private_key

from rewards_deployment.constants import DEFAULT_ACCOUNT_ALIAS


def load_deployer_account(
    alias: Optional[str] = None,
    private_key: Optional[str] = None,
    passphrase: Optional[str] = None,
    autosign: bool = False,
) -> AccountAPI:
    """
    Returns the single account that signs every deployment transaction.
    A known alias is loaded as is; otherwise the private key is imported under the alias.
    """
    alias = alias or DEFAULT_ACCOUNT_ALIAS
    if alias in accounts.aliases:
        account = accounts.load(alias)
    elif private_key:
        if not passphrase:
            raise ValueError("A passphrase is required to import the deployer private key.")
        account = import_account_from_private_key(alias, passphrase, private_key)
        print(f"Account imported: {account.address}")
    else:
        raise ValueError(f"No account named '{alias}' and no private key provided.")

    if autosign:
        print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        account.set_autosign(True, passphrase=passphrase)
    return account
