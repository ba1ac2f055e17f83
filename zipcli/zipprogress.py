"""
Progress bars for creates and extracts, drawn on stderr so they never mix
with archive bytes or file contents written to stdout.
"""

import sys

from tqdm import tqdm

BAR_FORMAT = '{desc} [{bar:20}] {percentage:3.0f}% {elapsed}s'



def progress_bar(desc, total, quiet=False):
    """
    A tqdm bar of "total" steps, or a disabled one if "quiet" or no steps;
    both support update() and the with statement, so callers need not test.
    """
    return tqdm(total=total,
                desc=desc,
                unit='file',
                file=sys.stderr,
                ascii=' =',
                bar_format=BAR_FORMAT,
                disable=quiet or not total)
