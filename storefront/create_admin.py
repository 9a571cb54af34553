import getpass

import psycopg2
from dotenv import load_dotenv

from storefront.app.accounts import AccountRole, DuplicateAccountError
from storefront.app.accounts.repository import PostgresAccountRepository
from storefront.app.accounts.service import AccountService
from storefront.app.licenses.repository import PostgresLicenseRepository
from storefront.config import load_config

load_dotenv()


def main():
    config = load_config()
    username = input("Admin username: ").strip()
    email = input("Admin email: ").strip()
    discord_id = input("Admin Discord ID: ").strip()
    password = getpass.getpass("Admin password: ")

    with psycopg2.connect(**config.db_settings) as conn:
        service = AccountService(
            repository=PostgresAccountRepository(conn=conn),
            licenses=PostgresLicenseRepository(conn=conn),
        )
        try:
            account = service.register(username=username, email=email, discord_id=discord_id, password=password)
        except DuplicateAccountError as exc:
            print(f"Not created: {exc}")
            return
        service.set_role(account.id, AccountRole.ADMIN.value)
        conn.commit()
    print(f"Done. Admin account {account.id} created.")


if __name__ == "__main__":
    main()
