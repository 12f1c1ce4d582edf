from __future__ import annotations

import argparse
import getpass
import logging
import os
import uvicorn

from calcweb_core.app import LOG_FORMAT, build_file_handler, create_app
from calcweb_core.config import load_core_config
from calcweb_core.home import ensure_calcweb_layout, resolve_calcweb_home
from calcweb_core.security.passwords import hash_password


def _hash_password_command() -> None:
    password = getpass.getpass("Password: ")
    if not password:
        raise SystemExit("Password must not be empty")
    print(hash_password(password))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="calcweb-core")
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=("serve", "hash-password"),
        help="'serve' runs the web server; 'hash-password' prints a bcrypt hash for core.json",
    )
    args = parser.parse_args(argv)

    if args.command == "hash-password":
        _hash_password_command()
        return

    home = resolve_calcweb_home()
    paths = ensure_calcweb_layout(home)

    config = load_core_config(paths)

    logging.basicConfig(
        level=config.logging.level.upper(),
        format=LOG_FORMAT,
        handlers=[build_file_handler(paths, config), logging.StreamHandler()],
    )

    host = os.environ.get("CALCWEB_BIND") or config.network.bind_host

    env_port = os.environ.get("CALCWEB_PORT")
    port = int(env_port) if env_port else config.network.port

    uvicorn.run(create_app(config), host=host, port=port)


if __name__ == "__main__":
    main()
