# Command-line entry point: build a tournament from YAML files and print it

import argparse
import os
import random
import sys

import yaml

from league.formats import FORMATS, FormatError, create_tournament
from league.models import sequential_ids
from league.settings import SettingsError, load_settings


def load_players(file_path):
    """Players file is either a list of names or {'players': [...]}."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file)
    if isinstance(data, dict):
        data = data.get('players')
    return data or []


def _describe_match(match):
    line = f"  {match['id']}: {match['player1'] or 'TBD'} vs {match['player2'] or 'TBD'}"
    if match['completed']:
        line += f"  [{match['winner']}]"
    return line


def print_tournament(state):
    kind = state['type']
    if kind in ('single_elimination', 'round_robin', 'swiss'):
        for round_data in state['rounds']:
            print(f"\n# {round_data.get('name') or 'Round ' + str(round_data['number'])}")
            for match in round_data['matches']:
                print(_describe_match(match))
    elif kind == 'double_elimination':
        for section in ('winners', 'losers'):
            for round_data in state[section]:
                print(f"\n# {section.title()}: {round_data['name']}")
                for match in round_data['matches']:
                    print(_describe_match(match))
        print("\n# Grand Final")
        print(_describe_match(state['grand_final']))
    elif kind == 'ladder':
        print(f"\n# Ladder (challenge up to {state['max_rungs']} rungs)")
        for entry in state['ladder']:
            print(f"  {entry['rank']:>3}. {entry['player']}")
    elif kind == 'killer':
        print("\n# Turn order")
        for player in state['players']:
            print(f"  {player['name']} ({player['lives']} lives)")


def main(argv=None):
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    parser = argparse.ArgumentParser(description='Build a tournament schedule from a players file.')
    parser.add_argument('format', choices=sorted(FORMATS))
    parser.add_argument('players', help='YAML file with the player names')
    parser.add_argument('--settings', default=os.path.join(base_dir, 'data', 'settings.yaml'),
                        help='YAML file with tournament_settings overrides')
    parser.add_argument('--seed', type=int, help='Random seed for reproducible draws')
    args = parser.parse_args(argv)

    try:
        players = load_players(args.players)
        settings = load_settings(args.settings)
        state = create_tournament(args.format, players, rng=random.Random(args.seed),
                                  ids=sequential_ids(), settings=settings)
    except (OSError, yaml.YAMLError, FormatError, SettingsError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"{FORMATS[args.format].label}: {len(players)} players")
    print_tournament(state)
    return 0


if __name__ == '__main__':
    sys.exit(main())
