"""Allow running orchestrator as: python -m index_core.orchestrator [--config path]."""

import argparse

from index_core.config.loader import load_config
from index_core.db.engine import init_engine_from_config, session_scope
from index_core.logging.setup import setup_logging
from index_core.orchestrator.runner import main, recalculate_history

parser = argparse.ArgumentParser(description="Daily index valuation")
parser.add_argument("--config", default=None, help="Path to config.yaml")
parser.add_argument(
    "--recalculate",
    metavar="INDEX",
    default=None,
    help="Recompute the stored history of one capped index and exit",
)
args = parser.parse_args()

if args.recalculate:
    config = load_config(args.config)
    setup_logging(level=config.logging.level, log_format=config.logging.format)
    init_engine_from_config(config.database)
    definition = config.get_index(args.recalculate)
    with session_scope() as session:
        recalculate_history(session, definition, config.constituents_for(definition), config.engine)
else:
    main(config_path=args.config)
