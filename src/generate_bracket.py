import argparse
import sys
import yaml
from bracket.errors import BracketError
from bracket.models import Entry, FORMATS, SINGLE_ELIMINATION
from bracket.seeding import POLICIES, STANDARD
from bracket.topology import generate


def load_entries(file_path):
    """Load entries from a YAML file with a top-level 'entries' list."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or {}
    return [Entry.from_dict(item) for item in data.get('entries', [])]


def format_matches(matches):
    """Render matches grouped by bracket and round, one 'home vs away' line each."""
    lines = []
    current = None
    for match in matches:
        group = (match.bracket_type, match.round)
        if group != current:
            if current is not None:
                lines.append('')  # Blank line between rounds
            lines.append(f"# {match.bracket_type.replace('_', ' ').title()} Round {match.round}")
            current = group
        home = match.home_id or 'TBD'
        away = match.away_id or 'TBD'
        suffix = f" -> {match.winner_id}" if match.winner_id else ''
        lines.append(f"{match.match_id}: {home} vs {away}{suffix}")
    return lines


def main(argv=None):
    parser = argparse.ArgumentParser(description='Preview a bracket for a list of entries.')
    parser.add_argument('entries_file', help='YAML file with an "entries" list')
    parser.add_argument('--format', default=SINGLE_ELIMINATION, choices=FORMATS)
    parser.add_argument('--seeding', default=STANDARD, choices=POLICIES)
    parser.add_argument('--max-teams', type=int, default=128)
    parser.add_argument('--rng-seed', type=int, default=None)
    args = parser.parse_args(argv)

    try:
        entries = load_entries(args.entries_file)
        matches = generate(entries, args.format, 'preview', policy=args.seeding,
                           max_slots=args.max_teams, rng_seed=args.rng_seed)
    except BracketError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except KeyError as e:
        print(f"Error: entry is missing field {e}", file=sys.stderr)
        return 1
    except yaml.YAMLError as e:
        print(f"Error: cannot parse {args.entries_file}: {e}", file=sys.stderr)
        return 1

    for line in format_matches(matches):
        print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
