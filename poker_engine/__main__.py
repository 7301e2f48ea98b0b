from poker_engine.main import run

run()
