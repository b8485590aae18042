"""Entry point for `python -m prover_dispatch`."""

from dotenv import load_dotenv

load_dotenv()

from prover_dispatch.cli import main

if __name__ == "__main__":
    main()
