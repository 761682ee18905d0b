"""
Unit tests for permutation iteration and wordlist sharding.
"""
import itertools
import threading

from module.permute.permutation import (
    PermutationIterator,
    calculate_total_permutations,
    iterate_permutations,
    shard_lists,
)
from module.worker.queues import ClosableQueue


def drain(iterator):
    out = []
    while True:
        perm, ok = iterator.next()
        if not ok:
            return out
        out.append(perm)


class TestPermutationIterator:
    def test_new_iterator_starts_at_zero(self):
        lists = [["a", "b"], ["1", "2"]]
        pi = PermutationIterator(lists)

        assert pi.lists is lists
        assert pi.indices == [0, 0]
        assert pi.finished is False

    def test_next_order_last_list_fastest(self):
        pi = PermutationIterator([["a", "b"], ["1", "2"]])

        assert drain(pi) == [["a", "1"], ["a", "2"], ["b", "1"], ["b", "2"]]
        assert pi.next() == (None, False)
        # stays exhausted
        assert pi.next() == (None, False)

    def test_count_and_order_match_product(self):
        lists = [["x", "y", "z"], ["1"], ["p", "q"], ["7", "8", "9", "0"]]

        got = drain(PermutationIterator(lists))

        assert len(got) == 3 * 1 * 2 * 4
        assert got == [list(p) for p in itertools.product(*lists)]

    def test_single_list(self):
        assert drain(PermutationIterator([["only", "two"]])) == [["only"], ["two"]]

    def test_empty_dimension_exhausted_immediately(self):
        pi = PermutationIterator([["a", "b"], [], ["1"]])

        assert pi.next() == (None, False)

    def test_no_dimensions_yields_nothing(self):
        assert PermutationIterator([]).next() == (None, False)

    def test_python_iteration(self):
        assert list(PermutationIterator([["a"], ["1", "2"]])) == [["a", "1"], ["a", "2"]]

    def test_permutations_are_independent_lists(self):
        pi = PermutationIterator([["a", "b"]])
        first, _ = pi.next()
        first.append("mutated")
        second, _ = pi.next()

        assert second == ["b"]


class TestShardLists:
    def test_basic_sharding(self):
        lists = [["a", "b"], ["1", "2", "3", "4"]]

        assert shard_lists(lists, 1, 2) == [
            [["a", "b"], ["1", "2"]],
            [["a", "b"], ["3", "4"]],
        ]

    def test_other_lists_shared_not_copied(self):
        lists = [["a", "b"], ["1", "2", "3", "4"], ["z"]]

        shards = shard_lists(lists, 1, 3)

        for shard in shards:
            assert shard[0] is lists[0]
            assert shard[2] is lists[2]

    def test_uneven_split(self):
        shards = shard_lists([["1", "2", "3", "4", "5"]], 0, 2)

        assert [s[0] for s in shards] == [["1", "2", "3"], ["4", "5"]]

    def test_more_shards_than_entries(self):
        shards = shard_lists([["a"], ["1", "2"]], 1, 4)

        assert len(shards) == 4
        assert [s[1] for s in shards] == [["1"], ["2"], [], []]
        # empty shard produces nothing and does not blow up
        assert PermutationIterator(shards[3]).next() == (None, False)

    def test_union_of_slices_rebuilds_list(self):
        original = [str(i) for i in range(23)]
        for num_shards in (1, 2, 3, 5, 7, 23, 30):
            shards = shard_lists([["a"], original], 1, num_shards)
            rebuilt = [w for s in shards for w in s[1]]
            assert rebuilt == original

    def test_shards_cover_product_without_overlap(self):
        lists = [["a", "b", "c"], ["1", "2", "3", "4", "5"]]
        shards = shard_lists(lists, 0, 2)

        seen = []
        for shard in shards:
            seen.extend(tuple(p) for p in PermutationIterator(shard))

        assert len(seen) == len(set(seen))
        assert set(seen) == set(itertools.product(*lists))

    def test_empty_input(self):
        assert shard_lists([], 0, 2) == []

    def test_invalid_index(self):
        lists = [["a", "b"], ["1", "2"]]
        assert shard_lists(lists, 2, 2) == []
        assert shard_lists(lists, -1, 2) == []

    def test_invalid_num_shards(self):
        lists = [["a", "b"], ["1", "2"]]
        assert shard_lists(lists, 0, 0) == []
        assert shard_lists(lists, 0, -3) == []


class TestCalculateTotalPermutations:
    def test_basic(self):
        shards = [
            [["a", "b"], ["1", "2"]],
            [["a", "b"], ["3", "4"]],
        ]
        assert calculate_total_permutations(shards) == 8

    def test_empty(self):
        assert calculate_total_permutations([]) == 0

    def test_single_empty_list(self):
        assert calculate_total_permutations([[[]]]) == 0

    def test_first_shard_size_times_count(self):
        # 3 + 2 real permutations, estimate uses the first shard for all
        shards = shard_lists([["1", "2", "3", "4", "5"]], 0, 2)
        assert calculate_total_permutations(shards) == 6


class TestIteratePermutations:
    def test_pushes_everything_in_order(self):
        q = ClosableQueue(2)
        got = []

        def consume():
            got.extend(q)

        consumer = threading.Thread(target=consume)
        consumer.start()

        pushed = iterate_permutations(PermutationIterator([["a", "b"], ["1", "2"]]), q)
        q.close()
        consumer.join(timeout=5)

        assert not consumer.is_alive()
        assert pushed == 4
        assert got == [["a", "1"], ["a", "2"], ["b", "1"], ["b", "2"]]
