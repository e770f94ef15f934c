#!/usr/bin/env python3
"""Compute route delay budgets for a design file and dump them."""

import argparse
import logging
import sys

from route_budgets import BudgetError, allocate_budgets
from route_budgets.utils.logging import parse_level, setup_logging


logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Allocate per-connection route delay budgets")
    parser.add_argument('--design', type=str, required=True,
                        help='Design JSON (netlist, timing graph, delay estimates)')
    parser.add_argument('--config', type=str, default=None,
                        help='YAML budget config (default: built-in defaults)')
    parser.add_argument('--output', type=str, default='route_budget.txt',
                        help='Budget dump file')
    parser.add_argument('--algorithm', type=str, default=None,
                        choices=['disable', 'minimax', 'scale_delay'],
                        help='Override the configured algorithm')
    parser.add_argument('--log-level', type=str, default='info',
                        help='Logging level')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Optional log file')
    args = parser.parse_args()

    setup_logging(parse_level(args.log_level), args.log_file)

    overrides = {}
    if args.algorithm:
        overrides['algorithm'] = args.algorithm

    try:
        budgets = allocate_budgets(args.design, args.config, args.output, **overrides)
    except (BudgetError, ValueError, OSError) as e:
        logger.error("Budget allocation failed: %s", e)
        return 1

    if not budgets.is_active():
        logger.info("Budgets disabled, nothing written")
        return 0

    result = budgets.last_pert_result
    if result is not None:
        print(f"Setup iterations: {result.setup_iterations}")
        print(f"Hold iterations:  {result.hold_iterations}")
    print(f"Budgets written to: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
