import sys

from contract_seal.main import main


if __name__ == "__main__":
    sys.exit(main())
