from typing import List, Optional, Tuple


class PermutationIterator:
    """
    Walks the cartesian product of several wordlists.

    Counts like an odometer where each digit's base is the length of its
    list: the last list changes fastest. One iterator must only ever be
    driven by a single producer.
    """

    def __init__(self, lists: List[List[str]]):
        self.lists = lists
        self.indices = [0] * len(lists)
        # nothing to emit without dimensions or with an empty one
        self.finished = not lists or any(len(l) == 0 for l in lists)

    def next(self) -> Tuple[Optional[List[str]], bool]:
        if self.finished:
            return None, False

        result = [l[self.indices[i]] for i, l in enumerate(self.lists)]

        # carry from the right
        for i in range(len(self.indices) - 1, -1, -1):
            self.indices[i] += 1
            if self.indices[i] < len(self.lists[i]):
                break
            self.indices[i] = 0
            if i == 0:
                self.finished = True

        return result, True

    def __iter__(self):
        return self

    def __next__(self) -> List[str]:
        perm, ok = self.next()
        if not ok:
            raise StopIteration
        return perm


def shard_lists(lists: List[List[str]], n: int, num_shards: int) -> List[List[List[str]]]:
    """
    Split the n-th list into num_shards contiguous slices.

    Every other list is shared by reference between all shards. Bad
    arguments give back an empty list rather than raising.
    """
    if not lists or n < 0 or n >= len(lists) or num_shards <= 0:
        return []

    nth_len = len(lists[n])
    shard_size = (nth_len + num_shards - 1) // num_shards  # ceil

    shards = []
    for j in range(num_shards):
        start = min(j * shard_size, nth_len)
        end = min(start + shard_size, nth_len)
        shard = [l if i != n else l[start:end] for i, l in enumerate(lists)]
        shards.append(shard)

    return shards


def calculate_total_permutations(sharded_lists: List[List[List[str]]]) -> int:
    """Progress bar estimate: size of the first shard times shard count."""
    if not sharded_lists or not sharded_lists[0]:
        return 0

    total = 1
    for l in sharded_lists[0]:
        total *= len(l)
    return total * len(sharded_lists)


def iterate_permutations(permuter: PermutationIterator, results) -> int:
    """Push every permutation into results. Returns how many were pushed."""
    count = 0
    while True:
        perm, ok = permuter.next()
        if not ok:
            return count
        results.put(perm)
        count += 1
