# cli.py -- Command line interface for ArangoDB-backed repositories
# Copyright (C) 2026 The Arangit Authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# Arangit is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Command line interface for ArangoDB-backed repositories.

Usage::

    arangit init [-c CONFIG] NAME
    arangit daemon [-c CONFIG] [-l ADDRESS] [-p PORT]

The configuration file defaults to the one named by ``ARANGIT_CFG``; see
`arangit.connector` for its format.
"""

__all__ = [
    "ArangoBackend",
    "cmd_daemon",
    "cmd_init",
    "main",
]

import logging
import optparse
import sys
from configparser import ConfigParser
from typing import cast

from dulwich import log_utils
from dulwich.protocol import TCP_GIT_PORT
from dulwich.server import Backend, BackendRepo, TCPGitServer

from .connector import ArangoConnector, client_from_conf, load_conf
from .repo import ArangoRepo
from .store import ArangoStore


class ArangoBackend(Backend):
    """Backend for serving git repositories from ArangoDB.

    The path of each request names the database holding the repository.
    All repositories opened by one backend share a single client.
    """

    def __init__(self, logger: logging.Logger, conf: ConfigParser) -> None:
        """Initialize ArangoBackend.

        Args:
          logger: Logger instance
          conf: Configuration parser instance
        """
        self.conf = conf
        self.logger = logger
        self.client = client_from_conf(conf)

    def open_repository(self, path: str) -> BackendRepo:
        """Open the repository in the database named by ``path``.

        Raises:
          NotGitRepository: if there is no such database
        """
        name = path.strip("/")
        self.logger.info("opening repository at %s", name)
        repo = ArangoRepo.from_conf(name, self.conf, client=self.client)
        return cast(BackendRepo, repo)

    def close(self) -> None:
        """Close the client shared by the repositories."""
        self.client.close()


def _config_option(parser: optparse.OptionParser) -> None:
    parser.add_option(
        "-c",
        "--config",
        dest="config",
        default="",
        help="Path to the configuration file for the ArangoDB backend.",
    )


def cmd_daemon(args: list[str]) -> None:
    """Start a TCP git server for ArangoDB repositories.

    Args:
      args: Command line arguments
    """
    parser = optparse.OptionParser()
    parser.add_option(
        "-l",
        "--listen_address",
        dest="listen_address",
        default="127.0.0.1",
        help="Binding IP address.",
    )
    parser.add_option(
        "-p",
        "--port",
        dest="port",
        type=int,
        default=TCP_GIT_PORT,
        help="Binding TCP port.",
    )
    _config_option(parser)
    options, args = parser.parse_args(args)

    logger = log_utils.getLogger(__name__)
    conf = load_conf(options.config or None)
    backend = ArangoBackend(logger, conf)

    log_utils.default_logging_config()
    server = TCPGitServer(backend, options.listen_address, port=options.port)
    try:
        server.serve_forever()
    finally:
        backend.close()


def cmd_init(args: list[str]) -> None:
    """Initialize a new git repository in ArangoDB.

    Args:
      args: Command line arguments
    """
    parser = optparse.OptionParser()
    _config_option(parser)
    options, args = parser.parse_args(args)

    conf = load_conf(options.config or None)
    if args == []:
        parser.error("missing repository name")
    name = args[0]
    store, created = ArangoStore.open(ArangoConnector.from_conf(name, conf))
    with store:
        if not created:
            print(f"Repository {name} already exists")
            sys.exit(1)
        ArangoRepo.init_bare(store)
    print(f"Initialized empty repository in {name}")


COMMANDS = {
    "init": cmd_init,
    "daemon": cmd_daemon,
}


def main(argv: list[str] = sys.argv) -> None:
    """Main entry point for the arangit command line interface.

    Args:
      argv: Command line arguments
    """
    try:
        cmd = COMMANDS[argv[1]]
    except IndexError:
        sys.exit(f"usage: {argv[0]} {{{','.join(COMMANDS)}}} [options]")
    except KeyError:
        sys.exit(f"{argv[0]}: unknown command {argv[1]!r}")
    cmd(argv[2:])


if __name__ == "__main__":
    main()
