import logging
import sys
from argparse import ArgumentParser

from contract_seal.crypto_engines.crypto.digital_signing import DigitalSigning
from contract_seal.crypto_engines.keys.identity import DEFAULT_COMMON_NAME
from contract_seal.execution.gateway import ExecutionGateway
from contract_seal.my_types import Int, List, Optional, Str
from contract_seal.setup.cmd_handler import CmdHandler


class ErroredArgumentParser(ArgumentParser):
    def error(self, message):
        print(f"Error: {message}\n")
        self.print_help()
        sys.exit(2)


def create_argument_parser() -> ArgumentParser:
    parser = ErroredArgumentParser(prog="contract-seal", description="Sign, verify and run Python contracts")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    # Keygen subparser
    keygen_parser = subparsers.add_parser("keygen", help="Generate a key pair and a self-signed certificate")
    keygen_parser.add_argument("--directory", type=str, default=".", help="Where to write the key files")
    keygen_parser.add_argument("--curve", type=str, default=DigitalSigning.DEFAULT_CURVE, choices=sorted(DigitalSigning.CURVES), help="The elliptic curve to use")
    keygen_parser.add_argument("--validity-days", type=int, default=365, help="How long the certificate is valid for")
    keygen_parser.add_argument("--common-name", type=str, default=DEFAULT_COMMON_NAME, help="The certificate subject common name")

    # Run subparser
    run_parser = subparsers.add_parser("run", help="Sign, verify, unwrap and execute contract.py")
    run_parser.add_argument("--directory", type=str, default=".", help="Where the key files and contract.py live")
    run_parser.add_argument("--encrypt", action="store_true", help="Encrypt the contract for the signer before signing")
    run_parser.add_argument("--timeout", type=float, default=ExecutionGateway.DEFAULT_TIMEOUT, help="Seconds the contract may run for")
    run_parser.add_argument("--interpreter", type=str, default=ExecutionGateway.DEFAULT_INTERPRETER, help="The Python interpreter to run the contract with")

    # Verify subparser
    verify_parser = subparsers.add_parser("verify", help="Verify a saved signed contract")
    verify_parser.add_argument("--envelope", type=str, required=True, help="The signed contract to verify")
    verify_parser.add_argument("--directory", type=str, default=".", help="Where public_key.pem lives")

    # Return the parser
    return parser


def main(argv: Optional[List[Str]] = None) -> Int:
    parser = create_argument_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    return CmdHandler.handle(args.command, args)


def keygen_main() -> None:
    sys.exit(main(["keygen"]))


def run_main() -> None:
    sys.exit(main(["run"]))


if __name__ == "__main__":
    sys.exit(main())
