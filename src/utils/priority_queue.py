"""Array-backed binary min-heap with arbitrary-element removal."""

from typing import Any, Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")

Comparator = Callable[[Any, Any], float]


def numeric_compare(a: Any, b: Any) -> int:
    """Default comparator: ascending natural order."""
    return (a > b) - (a < b)


class PriorityQueue(Generic[T]):
    """
    Min-heap priority queue over a caller-supplied comparator.

    The comparator returns a negative number when ``a`` should come out
    before ``b``, positive when after, and zero when they are equal.
    Every node precedes (or equals) both of its children after each
    mutating call.
    """

    def __init__(self, compare: Optional[Comparator] = None) -> None:
        self._heap: List[T] = []
        self._compare: Comparator = compare or numeric_compare

    @property
    def size(self) -> int:
        """Number of elements in the queue."""
        return len(self._heap)

    @property
    def is_empty(self) -> bool:
        """Whether the queue holds no elements."""
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def insert(self, item: T) -> None:
        """Append an element and restore heap order."""
        self._heap.append(item)
        self._sift_up(len(self._heap) - 1)

    def peek(self) -> Optional[T]:
        """Return the minimum element without removing it, or None."""
        return self._heap[0] if self._heap else None

    def pop(self) -> Optional[T]:
        """Remove and return the minimum element, or None when empty."""
        if not self._heap:
            return None
        if len(self._heap) == 1:
            return self._heap.pop()

        result = self._heap[0]
        self._heap[0] = self._heap.pop()
        self._sift_down(0)
        return result

    def remove(self, item: T) -> bool:
        """
        Remove a specific element.

        The element is located by a linear scan, so this is O(n).

        Returns:
            True if the element was found and removed, False otherwise
        """
        index = self._index_of(item)
        if index is None:
            return False

        last = self._heap.pop()
        if index == len(self._heap):
            return True

        self._heap[index] = last
        # The replacement may belong above or below the vacated slot
        self._sift_up(index)
        self._sift_down(index)
        return True

    def remove_where(self, predicate: Callable[[T], bool]) -> int:
        """Remove every element matching ``predicate``. Returns the count removed."""
        original_length = len(self._heap)
        self._heap = [item for item in self._heap if not predicate(item)]
        removed = original_length - len(self._heap)
        if removed:
            self._heapify()
        return removed

    def clear(self) -> None:
        """Remove all elements."""
        self._heap = []

    def to_array(self) -> List[T]:
        """Snapshot of the elements in heap (not sorted) order."""
        return list(self._heap)

    def _index_of(self, item: T) -> Optional[int]:
        for i, candidate in enumerate(self._heap):
            if candidate is item or candidate == item:
                return i
        return None

    def _sift_up(self, index: int) -> None:
        heap = self._heap
        while index > 0:
            parent = (index - 1) // 2
            if self._compare(heap[index], heap[parent]) >= 0:
                break
            heap[index], heap[parent] = heap[parent], heap[index]
            index = parent

    def _sift_down(self, index: int) -> None:
        heap = self._heap
        length = len(heap)
        while True:
            left = 2 * index + 1
            right = left + 1
            smallest = index

            if left < length and self._compare(heap[left], heap[smallest]) < 0:
                smallest = left
            if right < length and self._compare(heap[right], heap[smallest]) < 0:
                smallest = right

            if smallest == index:
                break
            heap[index], heap[smallest] = heap[smallest], heap[index]
            index = smallest

    def _heapify(self) -> None:
        for i in range(len(self._heap) // 2 - 1, -1, -1):
            self._sift_down(i)

    def __repr__(self) -> str:
        return f"PriorityQueue(size={len(self._heap)})"
