# Author: Bradley R. Kinnard
# xfr-notes command line entry point

import argparse
import sys

from crypto.parameters import Parameters
from crypto.rng import SeededRandomSource, SystemRandomSource
from crypto.signatures import XfrKeyPair
from utils.helpers import get_logger
from xfr.builder import build_xfr_note
from xfr.memos import open_blind_asset_record
from xfr.structs import AssetRecord, AssetType
from xfr.verifier import batch_verify_xfr_notes, verify_xfr_note


logger = get_logger(__name__)


def show_parameters(params: Parameters) -> dict:
    """public parameter summary, safe to print."""
    return {
        "domain": params.domain,
        "amount_bits": params.amount_bits,
        "attribute_bits": params.attribute_bits,
        "max_records": params.max_records,
        "max_asset_types": params.max_asset_types,
        "pedersen_h": params.pc_h.to_bytes().hex(),
    }


def run_demo(params: Parameters, seed: int | None = None) -> bool:
    """
    build a two-asset note, verify it, then spend one of its outputs.

    returns True when every note verified, alone and as a batch.
    """
    rng = SystemRandomSource() if seed is None else SeededRandomSource(seed)
    alice, bob, carol = (XfrKeyPair.generate(rng) for _ in range(3))
    usd, eur = AssetType.from_code("USD"), AssetType.from_code("EUR")

    first = build_xfr_note(
        params,
        rng,
        inputs=[
            AssetRecord(amount=6, asset_type=usd, owner=alice.public),
            AssetRecord(amount=5, asset_type=eur, owner=alice.public),
        ],
        outputs=[
            AssetRecord(amount=6, asset_type=usd, owner=bob.public),
            AssetRecord(amount=5, asset_type=eur, owner=carol.public),
        ],
        signing_keys=[alice],
    )
    logger.info(f"first note: {verify_xfr_note(params, first).reason}")

    # bob spends what he received
    received = open_blind_asset_record(
        params, first.body.outputs[0], first.body.owner_memos[0], bob
    )
    second = build_xfr_note(
        params,
        rng,
        inputs=[received],
        outputs=[AssetRecord(amount=6, asset_type=usd, owner=carol.public)],
        signing_keys=[bob],
    )
    logger.info(f"second note: {verify_xfr_note(params, second).reason}")

    results = batch_verify_xfr_notes(params, [first, second], rng)
    for i, result in enumerate(results):
        logger.info(f"batch[{i}]: {result.reason}")
    return all(results)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="confidential transfer notes")
    parser.add_argument("--config", default=None, help="parameters YAML (default: shipped)")
    parser.add_argument("--amount-bits", type=int, default=None, help="override the amount bound")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("params", help="print the public parameters")
    demo = sub.add_parser("demo", help="build, spend and verify sample notes")
    demo.add_argument("--seed", type=int, default=None, help="deterministic run (testing only)")
    args = parser.parse_args(argv)

    params = Parameters.from_config(args.config)
    if args.amount_bits is not None:
        params = params.with_amount_bits(args.amount_bits)

    if args.command == "params":
        for key, value in show_parameters(params).items():
            print(f"{key}: {value}")
        return 0

    ok = run_demo(params, args.seed)
    print("all notes valid" if ok else "verification failed")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
