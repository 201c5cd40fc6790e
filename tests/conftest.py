from __future__ import annotations

import copy
import json

import pytest

CSV_LEDGER = (
    "TX_ID,TX_TYPE,FROM_USER_ID,TO_USER_ID,AMOUNT,CURRENCY,TIMESTAMP,STATUS,DESCRIPTION\n"
    '1001,DEPOSIT,0,501,500.00,USD,2023-01-01T00:00:00Z,SUCCESS,"Initial account funding"\n'
    '1002,TRANSFER,501,502,150.00,usd,2023-01-01T01:00:00Z,FAILURE,"Payment for services, invoice #123"\n'
    "1003,WITHDRAWAL,502,0,10.00,USD,2023-01-01T02:00:00Z,PENDING,ATM withdrawal\n"
)

TEXT_LEDGER = """# ledger export
TX_ID: 1001
TX_TYPE: DEPOSIT
FROM_USER_ID: 0
TO_USER_ID: 501
AMOUNT: 500.00
CURRENCY: USD
TIMESTAMP: 2023-01-01T00:00:00Z
STATUS: SUCCESS
DESCRIPTION: "Initial account funding"

TX_ID: 1002
TX_TYPE: TRANSFER
FROM_USER_ID: 501
TO_USER_ID: 502
AMOUNT: 150.00
CURRENCY: USD
TIMESTAMP: 2023-01-01T01:00:00Z
STATUS: FAILURE
DESCRIPTION: "Payment for services, invoice #123"

TX_ID: 1003
TX_TYPE: WITHDRAWAL
FROM_USER_ID: 502
TO_USER_ID: 0
AMOUNT: 10.00
CURRENCY: USD
TIMESTAMP: 1672538400000
STATUS: PENDING
DESCRIPTION: "ATM withdrawal"

"""

JSON_ITEMS = [
    {
        "id": 1001,
        "tx_type": "DEPOSIT",
        "from_user_id": 0,
        "to_user_id": 501,
        "amount": "500.00",
        "currency": "USD",
        "timestamp": "2023-01-01T00:00:00Z",
        "status": "SUCCESS",
        "description": "Initial account funding",
    },
    {
        "id": "1002",
        "tx_type": "transfer",
        "from_user_id": "501",
        "to_user_id": "502",
        "amount": "150.00",
        "currency": "USD",
        "timestamp": "2023-01-01T03:00:00+02:00",
        "status": "FAILURE",
        "description": "Payment for services, invoice #123",
    },
    {
        "id": 1003,
        "tx_type": "WITHDRAWAL",
        "from_user_id": 502,
        "to_user_id": 0,
        "amount": "10.00",
        "currency": "USD",
        "timestamp": 1672538400000,
        "status": "PENDING",
        "description": "ATM withdrawal",
    },
]


@pytest.fixture()
def csv_bytes() -> bytes:
    return CSV_LEDGER.encode("utf-8")


@pytest.fixture()
def text_bytes() -> bytes:
    return TEXT_LEDGER.encode("utf-8")


@pytest.fixture()
def json_bytes() -> bytes:
    return json.dumps(JSON_ITEMS, indent=2).encode("utf-8")


@pytest.fixture()
def jsonl_bytes() -> bytes:
    return ("\n".join(json.dumps(item) for item in JSON_ITEMS) + "\n").encode("utf-8")


@pytest.fixture()
def json_items() -> list:
    return copy.deepcopy(JSON_ITEMS)
