"""Alternate accounts used to declare classes in parallel."""

from __future__ import annotations

import logging

import requests

from world_migrator.constants import (
    PREDEPLOYED_ACCOUNTS_METHOD,
    PREDEPLOYED_ACCOUNTS_TIMEOUT,
)
from world_migrator.exceptions import CalldataDecodeError
from world_migrator.services.target import Account, AccountFactory
from world_migrator.utils.calldata import parse_felt
from world_migrator.utils.logging import log_with_context


def get_predeployed_accounts(
    rpc_url: str, account_factory: AccountFactory
) -> list[Account]:
    """Fetch the pre-funded accounts of a development node.

    Nodes that do not expose ``dev_predeployedAccounts`` simply yield no
    account: every failure is logged at debug level and an empty list is
    returned.
    """
    payload = {
        "jsonrpc": "2.0",
        "id": 1,
        "method": PREDEPLOYED_ACCOUNTS_METHOD,
        "params": [],
    }

    try:
        response = requests.post(
            rpc_url, json=payload, timeout=PREDEPLOYED_ACCOUNTS_TIMEOUT
        )
        response.raise_for_status()
        body = response.json()
    except (requests.RequestException, ValueError) as e:
        log_with_context(
            logging.DEBUG,
            f"Pre-funded accounts unavailable: {e}",
            rpc_url=rpc_url,
        )
        return []

    entries = body.get("result") if isinstance(body, dict) else None
    if not isinstance(entries, list):
        log_with_context(
            logging.DEBUG,
            "Node does not list pre-funded accounts.",
            rpc_url=rpc_url,
        )
        return []

    accounts = []
    for entry in entries:
        try:
            address = parse_felt(entry["address"])
            private_key = parse_felt(entry["private_key"])
        except (KeyError, TypeError, CalldataDecodeError) as e:
            log_with_context(
                logging.DEBUG, f"Skipping malformed pre-funded account: {e!r}"
            )
            continue
        accounts.append(account_factory(address, private_key))

    log_with_context(
        logging.DEBUG, f"Found {len(accounts)} pre-funded accounts.", rpc_url=rpc_url
    )
    return accounts
