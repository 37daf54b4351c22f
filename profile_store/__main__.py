from profile_store.main import run

run()
