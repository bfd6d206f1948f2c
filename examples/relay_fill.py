"""Relay an RFQ fill through a worker account.

This example wraps a signed RFQ order in a meta-transaction, has the taker
sign it, validates it against the chain, submits it from a worker derived
from a mnemonic and decodes the resulting fill event.

Prerequisites:
1. pip install -e .
2. Set environment variables (RFQM_RPC_URL, RFQM_CHAIN_ID, WORKER_MNEMONIC,
   WORKER_INDEX, TAKER_PRIVATE_KEY, ORDER_FILE)
3. Fund the worker with native currency for gas

ORDER_FILE is a JSON document:
    {
      "order": {"maker_token": "0x...", "taker_token": "0x...",
                "maker_amount": "...", "taker_amount": "...",
                "maker": "0x...", "taker": "0x...", "pool": "0x...",
                "expiry": 1900000000, "tx_origin": "0x...", "salt": "..."},
      "signature": {"signature_type": 2, "v": 27, "r": "0x...", "s": "0x..."}
    }

Usage:
    python relay_fill.py
"""

import asyncio
import json
import os

from dotenv import load_dotenv

load_dotenv()


def load_order(path):
    from rfqm_relay import FillOrder, Signature, SignatureType

    with open(path) as f:
        payload = json.load(f)

    raw_order = payload["order"]
    order = FillOrder(
        maker_token=raw_order["maker_token"],
        taker_token=raw_order["taker_token"],
        maker_amount=int(raw_order["maker_amount"]),
        taker_amount=int(raw_order["taker_amount"]),
        maker=raw_order["maker"],
        taker=raw_order["taker"],
        pool=bytes.fromhex(raw_order["pool"][2:]),
        expiry=int(raw_order["expiry"]),
        tx_origin=raw_order["tx_origin"],
        salt=int(raw_order["salt"]),
    )
    raw_signature = payload["signature"]
    signature = Signature(
        signature_type=SignatureType(raw_signature["signature_type"]),
        v=int(raw_signature["v"]),
        r=bytes.fromhex(raw_signature["r"][2:]),
        s=bytes.fromhex(raw_signature["s"][2:]),
    )
    return order, signature


async def main():
    from eth_account import Account

    from rfqm_relay import (
        ChainClient,
        ExchangeProxyRelay,
        derive_private_key,
        load_config_from_env,
        sign_meta_transaction,
    )
    from rfqm_relay.protocol import format_gwei

    required = ["WORKER_MNEMONIC", "TAKER_PRIVATE_KEY", "ORDER_FILE"]
    missing = [var for var in required if not os.environ.get(var)]
    if missing:
        print(f"Missing required environment variables: {', '.join(missing)}")
        return

    config = load_config_from_env()
    worker_key = derive_private_key(
        os.environ["WORKER_MNEMONIC"], int(os.environ.get("WORKER_INDEX", "0"))
    )
    worker_address = Account.from_key(worker_key).address
    taker_key = os.environ["TAKER_PRIVATE_KEY"]
    taker_address = Account.from_key(taker_key).address

    print("=" * 60)
    print("  RFQM RELAY FILL")
    print("=" * 60)

    client = ChainClient.from_rpc_url(
        config.rpc_url,
        private_keys=[worker_key],
        request_timeout_s=config.request_timeout_s,
    )
    relay = ExchangeProxyRelay(client, config)

    order, maker_signature = load_order(os.environ["ORDER_FILE"])

    print(f"\n[1] Worker {worker_address}")
    balance = await relay.get_account_balance(worker_address)
    gas_price = await client.get_gas_price()
    print(f"    Gas price: {format_gwei(gas_price)} Gwei")
    if not await relay.is_worker_ready_and_able(worker_address, balance, gas_price):
        print("    Worker is not ready (balance too low or transaction pending)")
        return

    print("\n[2] Building and signing meta-transaction...")
    meta_tx = relay.generate_meta_transaction(
        order, maker_signature, taker_address, order.taker_amount
    )
    taker_signature = sign_meta_transaction(taker_key, meta_tx)

    print("\n[3] Validating against the chain...")
    result = await relay.validate_meta_transaction(
        meta_tx, taker_signature, worker_address, {"gas_price": gas_price}
    )
    print(f"    Taker token filled: {result.taker_token_filled_amount}")
    print(f"    Maker token filled: {result.maker_token_filled_amount}")

    print("\n[4] Submitting...")
    call_data = relay.generate_meta_transaction_call_data(meta_tx, taker_signature)
    gas = await relay.estimate_gas_for_call(call_data, worker_address)
    tx_hash = await relay.submit_call_data(
        call_data, worker_address, {"gas": gas, "gas_price": gas_price}
    )
    print(f"    TX: {tx_hash}")

    print("\n[5] Waiting for receipt...")
    receipt = None
    while receipt is None:
        await asyncio.sleep(2)
        receipt = await relay.get_receipt_if_exists(tx_hash)

    event = relay.get_fill_event_from_logs(receipt["logs"])
    print(f"    Block {receipt['blockNumber']}: filled "
          f"{event.taker_token_filled_amount} / {event.maker_token_filled_amount}")


if __name__ == "__main__":
    asyncio.run(main())
