#!/usr/bin/python3
# This script mirrors the branches of a remote repository into an
# ArangoDB database, creating the repository there if needed.
#
# Example usage:
#  python examples/arangorepo.py https://github.com/jelmer/testrepo testrepo

import sys

from dulwich import porcelain

from arangit.connector import ArangoConnector, load_conf
from arangit.repo import ArangoRepo

url, name = sys.argv[1:3]

connector = ArangoConnector.from_conf(name, load_conf())
with ArangoRepo.open(connector, create=True) as repo:
    fetch_result = porcelain.fetch(repo, url)
    for ref, sha in fetch_result.refs.items():
        if ref.startswith(b"refs/heads/") and sha is not None:
            repo.refs[ref] = sha
    print(repo.refs.as_dict())
