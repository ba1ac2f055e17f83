"""
Per-kind counters that BuildService and ExtractService keep while they run.
The "Done ..." summaries count files plus links from them, and verbose
output shows their repr: files=4, folders=3, links=0, unknowns=0, ignored=1.
"""


class CreateStats:
    """
    -----------------------------------------------------------------------
    What one BuildService.save() found: regular files and links zipped,
    folders stored as entries, unknown item types skipped (FIFOs, sockets,
    devices), and items skipped by the ignore-list or as the output file.
    The traversal only counts on the event-loop thread, so one instance
    serves every root; += adds another run's counts in place.
    -----------------------------------------------------------------------
    """
    attrs = 'files', 'folders', 'links', 'unknowns', 'ignored'

    def __init__(self):
        for attr in self.attrs:
            setattr(self, attr, 0)

    def __iadd__(self, other):
        for attr in self.attrs:
            setattr(self, attr, getattr(self, attr) + getattr(other, attr))
        return self

    def __repr__(self):
        return ', '.join('%s=%d' % (attr, getattr(self, attr)) for attr in self.attrs)



class ExtractStats(CreateStats):
    """
    What one ExtractService.extract() wrote; "ignored" also counts items
    that would have landed outside the output folder.
    """
    attrs = 'files', 'folders', 'links', 'ignored'
