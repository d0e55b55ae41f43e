#!/usr/bin/env python3
"""Run the hospital ABM from a YAML configuration and print the report.

Usage:
    python3 scripts/run_hospital_model.py --config configs/base.yaml
    python3 scripts/run_hospital_model.py --config configs/base.yaml \
        --scenario configs/uniform_sampler.yaml --steps 200 --seed 7 \
        --plot results/hospital_states.png
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from hospital_abm.config import ConfigError, load_config
from hospital_abm.model import run_from_config
from hospital_abm.report import format_report


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('--config', default=str(project_root / 'configs' / 'base.yaml'),
                        help='Base configuration YAML')
    parser.add_argument('--scenario', default=None,
                        help='Optional scenario override YAML')
    parser.add_argument('--steps', type=int, default=None,
                        help='Override simulation.n_steps')
    parser.add_argument('--seed', type=int, default=None,
                        help='Override simulation.seed')
    parser.add_argument('--no-events', action='store_true',
                        help='Omit the per-event listing from the report')
    parser.add_argument('--summary-json', default=None,
                        help='Write RunResult.summary() to this JSON file')
    parser.add_argument('--plot', default=None,
                        help='Save a state-history PNG to this path')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='-v for INFO logging, -vv for DEBUG')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    level = (logging.WARNING, logging.INFO, logging.DEBUG)[min(args.verbose, 2)]
    logging.basicConfig(level=level,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    overrides = {'simulation': {}}
    if args.steps is not None:
        overrides['simulation']['n_steps'] = args.steps
    if args.seed is not None:
        overrides['simulation']['seed'] = args.seed

    try:
        config = load_config(args.config, args.scenario, overrides)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        model, result = run_from_config(config)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    show_events = config.output.show_events and not args.no_events
    print(format_report(result, model, show_events=show_events,
                        max_events=config.output.max_events))

    if args.summary_json:
        out = Path(args.summary_json)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(result.summary(), indent=2))

    if args.plot:
        from hospital_abm.viz import plot_state_history
        out = Path(args.plot)
        out.parent.mkdir(parents=True, exist_ok=True)
        plot_state_history(result, save_path=str(out))

    return 0


if __name__ == '__main__':
    sys.exit(main())
