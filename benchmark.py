"""
Benchmark: structshare updates vs deep copies.

This benchmark compares four ways of producing a new version of a
nested document after a small change:

    1. copy.deepcopy + assignment — the "safe" baseline
    2. structshare (copy-on-write, structural sharing)
    3. structshare inside a Session (in-place after the first copy)
    4. pyrsistent — persistent maps/vectors (only if installed)

The point is NOT raw speed alone. The point is:
    structshare copies only the containers on the changed path and
    leaves everything else shared, so cost tracks the DEPTH of a change,
    not the SIZE of the document.
"""

import copy
import sys
import os
import time

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from structshare import Session, deep_merge, get_in, push, set_in


# ═══════════════════════════════════════════════════════════════════
#  TEST DATA
# ═══════════════════════════════════════════════════════════════════

SERVICE_CONFIG = {
    "server": {"host": "0.0.0.0", "port": 443, "tls": True, "workers": 4},
    "database": {
        "host": "db.internal",
        "port": 5432,
        "name": "production",
        "pool": {"min": 2, "max": 10, "timeout_s": 30},
    },
    "logging": {"level": "WARN", "format": "json", "outputs": ["stdout", "file"]},
    "features": {f"flag_{i}": bool(i % 2) for i in range(200)},
}


def _document(n_users: int) -> dict:
    return {
        "users": {
            f"user_{i}": {
                "profile": {"name": f"User {i}", "email": f"u{i}@example.com"},
                "roles": ["reader"],
                "settings": {"theme": "dark", "notifications": {"email": True}},
            }
            for i in range(n_users)
        },
        "meta": {"version": 1},
    }


def _try_import(name):
    """Safely attempt to import an optional dependency by name."""
    import importlib
    try:
        return importlib.import_module(name)
    except ImportError:
        return None


def _timed(fn, repeat: int = 200) -> float:
    t0 = time.perf_counter()
    for _ in range(repeat):
        fn()
    return (time.perf_counter() - t0) / repeat


# ═══════════════════════════════════════════════════════════════════
#  BENCHMARKS
# ═══════════════════════════════════════════════════════════════════

def benchmark_sharing():
    """Verify what is shared after a single deep update."""
    print("=" * 70)
    print("  §1  STRUCTURAL SHARING")
    print("=" * 70)
    print()

    new = set_in("database.pool.max", 20, SERVICE_CONFIG)
    shared = [k for k in SERVICE_CONFIG if new[k] is SERVICE_CONFIG[k]]
    copied = [k for k in SERVICE_CONFIG if new[k] is not SERVICE_CONFIG[k]]

    print(f"  ✓ Shared sections:  {', '.join(shared)}")
    print(f"  ✓ Copied sections:  {', '.join(copied)}")
    print(f"  ✓ No-op update returns input: "
          f"{set_in('database.pool.max', 10, SERVICE_CONFIG) is SERVICE_CONFIG}")
    print(f"  ✓ Original untouched: {get_in('database.pool.max', SERVICE_CONFIG) == 10}")
    print()


def benchmark_single_update():
    """One leaf change: deepcopy vs set_in."""
    print("=" * 70)
    print("  §2  SINGLE LEAF UPDATE")
    print("=" * 70)
    print()

    def with_deepcopy():
        new = copy.deepcopy(SERVICE_CONFIG)
        new["database"]["pool"]["max"] = 20
        return new

    def with_set_in():
        return set_in("database.pool.max", 20, SERVICE_CONFIG)

    dc = _timed(with_deepcopy)
    ss = _timed(with_set_in)
    print(f"  deepcopy + assign:  {dc * 1e6:>9.1f}µs")
    print(f"  set_in:             {ss * 1e6:>9.1f}µs   ({dc / ss:.0f}x)")
    print()


def benchmark_batched_updates():
    """Many updates to one document: plain copy-on-write vs a Session."""
    print("=" * 70)
    print("  §3  MANY UPDATES — PLAIN vs SESSION")
    print("=" * 70)
    print()

    doc = _document(100)
    keys = [f"user_{i}" for i in range(0, 100, 5)]

    def plain():
        value = doc
        for key in keys:
            value = set_in(["users", key, "settings", "theme"], "light", value)
            value = set_in(["users", key, "roles"],
                           push(["writer"], value["users"][key]["roles"]), value)
        return value

    def in_session():
        with Session() as token:
            value = doc
            for key in keys:
                value = set_in(["users", key, "settings", "theme"], "light", value, token=token)
                roles = push(["writer"], value["users"][key]["roles"], token=token)
                value = set_in(["users", key, "roles"], roles, value, token=token)
        return value

    counter = Session()
    with counter as token:
        value = doc
        for key in keys:
            value = set_in(["users", key, "settings", "theme"], "light", value, token=token)
    created = counter.created_count

    t_plain = _timed(plain, 50)
    t_session = _timed(in_session, 50)
    print(f"  {len(keys) * 2} updates, plain:    {t_plain * 1e3:>8.2f}ms")
    print(f"  {len(keys) * 2} updates, session:  {t_session * 1e3:>8.2f}ms")
    print(f"  Containers created in session for {len(keys)} theme updates: {created}")
    print()


def benchmark_vs_pyrsistent():
    """Compare with pyrsistent (if available)."""
    print("=" * 70)
    print("  §4  COMPARISON WITH PERSISTENT COLLECTIONS")
    print("=" * 70)
    print()

    pyrsistent = _try_import("pyrsistent")
    if not pyrsistent:
        print("  pyrsistent:         NOT INSTALLED (pip install pyrsistent)")
        print()
        return

    frozen = pyrsistent.freeze(SERVICE_CONFIG)
    pr = _timed(lambda: frozen.transform(["database", "pool", "max"], 20))
    ss = _timed(lambda: set_in("database.pool.max", 20, SERVICE_CONFIG))
    print(f"  pyrsistent.transform:  {pr * 1e6:>9.1f}µs  (needs its own types)")
    print(f"  structshare.set_in:    {ss * 1e6:>9.1f}µs  (plain dicts and lists)")
    print()


def benchmark_scaling():
    """Cost of one update as the document grows."""
    print("=" * 70)
    print("  §5  SCALING")
    print("=" * 70)
    print()

    for n in [10, 100, 1000, 5000]:
        doc = _document(n)
        patch = {"users": {"user_0": {"settings": {"theme": "light"}}}}

        dc = _timed(lambda: copy.deepcopy(doc), 5)
        ss = _timed(lambda: deep_merge(patch, doc), 50)
        print(f"  Users {n:>5}: deepcopy={dc * 1e3:>9.2f}ms  deep_merge={ss * 1e3:>7.3f}ms")

    print()


def main():
    print()
    print("╔══════════════════════════════════════════════════════════════════════╗")
    print("║          STRUCTURAL SHARING UPDATES — BENCHMARK SUITE               ║")
    print("║          structshare v0.1.0                                         ║")
    print("╚══════════════════════════════════════════════════════════════════════╝")
    print()

    benchmark_sharing()
    benchmark_single_update()
    benchmark_batched_updates()
    benchmark_vs_pyrsistent()
    benchmark_scaling()


if __name__ == "__main__":
    main()
