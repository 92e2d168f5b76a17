import argparse
import sys

import pandas as pd

from errors import MdsError
from mds import MdsSettings, project_table, append_embedding, METHODS


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Multidimensional scaling of the numeric columns of a CSV file',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Appends one column per target dimension ("MDS Col 0", "MDS Col 1", ...) to the
input table. Rows without any value in the selected columns stay empty.

Examples:
  python application.py iris.csv -o iris_mds.csv
  python application.py iris.csv --method iterative --epochs 100 --distance manhattan
""")
    parser.add_argument('input', help='Path to the input CSV file')
    parser.add_argument('-o', '--output', default=None,
                        help='Output path (default: <input>_mds.csv)')
    parser.add_argument('--method', choices=METHODS, default='pivot',
                        help='Algorithm (default: pivot)')
    parser.add_argument('-d', '--dimensions', type=int, default=2,
                        help='Target dimension (default: 2)')
    parser.add_argument('--distance', default='euclidean',
                        help='euclidean, manhattan, minkowski, cosine or correlation (default: euclidean)')
    parser.add_argument('--p', type=int, default=2,
                        help='Power of the Minkowski distance (default: 2)')
    parser.add_argument('--pivots', type=int, default=100,
                        help='Number of pivots for pivot MDS (default: 100)')
    parser.add_argument('--epochs', type=int, default=50,
                        help='Number of epochs for iterative MDS (default: 50)')
    parser.add_argument('--learning-rate', type=float, default=1.0,
                        help='Initial learning rate for iterative MDS (default: 1.0)')
    parser.add_argument('--seed', type=int, default=0,
                        help='Random seed for iterative MDS (default: 0)')
    parser.add_argument('--columns', nargs='+', default=None,
                        help='Columns to use (default: all numeric columns)')
    parser.add_argument('--index-col', default=None,
                        help='Column holding the row identifiers (default: row number)')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    settings = MdsSettings(method=args.method, num_dimensions=args.dimensions, distance=args.distance, p=args.p,
                           num_pivots=args.pivots, num_epochs=args.epochs, learning_rate=args.learning_rate,
                           seed=args.seed)

    try:
        df = pd.read_csv(args.input, index_col=args.index_col)
        result = project_table(df, settings, columns=args.columns, verbose=not args.quiet)
    except (MdsError, OSError, ValueError, KeyError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1

    output = args.output
    if output is None:
        output = args.input[:-4] + '_mds.csv' if args.input.endswith('.csv') else args.input + '_mds.csv'

    append_embedding(df, result).to_csv(output)

    if not args.quiet:
        print(result.summary())
        print(f'Written to {output}')

    return 0


if __name__ == '__main__':
    sys.exit(main())
