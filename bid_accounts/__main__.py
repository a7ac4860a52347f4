from bid_accounts.main import run

run()
