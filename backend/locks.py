import threading
import weakref


class UserLockRegistry:
    """
    One lock per user id.

    Passes for the same user run one at a time; different users never
    wait on each other. Entries are weak: a user's lock lives while some
    pass holds or waits on it and is dropped afterwards, so the registry
    does not grow with every user id ever seen.
    """

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, user_id: int) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)


user_locks = UserLockRegistry()
