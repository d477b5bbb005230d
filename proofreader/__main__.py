"""Run the proofreader with ``python -m proofreader``."""
from proofreader.app import run_server

if __name__ == '__main__':
    run_server()
