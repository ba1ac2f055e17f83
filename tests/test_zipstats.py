from zipcli.zipstats import CreateStats, ExtractStats


def test_repr_lists_every_counter():
    stats = CreateStats()
    stats.files = 4
    stats.folders = 3
    assert repr(stats) == 'files=4, folders=3, links=0, unknowns=0, ignored=0'
    assert repr(ExtractStats()) == 'files=0, folders=0, links=0, ignored=0'


def test_counts_add_up_in_place():
    total, run = CreateStats(), CreateStats()
    run.links = 2
    total += run
    total += run
    assert total.links == 4
