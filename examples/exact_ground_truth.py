"""Recall measurement example for usearch_ctypes.

This script demonstrates:
- Bulk insertion with an explicit reservation
- Tuning expansion_search and search threads
- Computing ground truth with exact_search
- Measuring recall@k of the approximate index
"""

import time

import numpy as np
from usearch_ctypes import Index, exact_search


def main():
    print("usearch_ctypes - Ground Truth Example")
    print("=" * 60)

    # Configuration
    DIMENSIONS = 256
    NUM_VECTORS = 10_000
    K = 10
    NUM_QUERIES = 100

    print("\nConfiguration:")
    print(f"  Dimensions: {DIMENSIONS}")
    print(f"  Total vectors: {NUM_VECTORS:,}")
    print(f"  Search k: {K}")
    print(f"  Search queries: {NUM_QUERIES}")

    rng = np.random.default_rng(0)
    dataset = rng.random((NUM_VECTORS, DIMENSIONS), dtype=np.float32)
    queries = rng.random((NUM_QUERIES, DIMENSIONS), dtype=np.float32)

    print("\nComputing exact neighbors...")
    start_time = time.time()
    truth = exact_search(dataset, queries, k=K, metric="l2sq", threads=4)
    print(f"  Exact search time: {time.time() - start_time:.2f}s")

    with Index(dimensions=DIMENSIONS, metric="l2sq", quantization="f32") as index:
        index.reserve(NUM_VECTORS)
        index.change_threads_add(4)
        index.change_threads_search(4)

        print(f"\nInserting {NUM_VECTORS:,} vectors...")
        start_time = time.time()
        for key, vec in enumerate(dataset):
            index.add(key, vec)
        insert_time = time.time() - start_time
        print(f"  Average: {NUM_VECTORS / insert_time:,.0f} vectors/sec")
        print(f"  Memory usage: {index.memory_usage / 2**20:.1f} MiB")

        for expansion in (16, 64, 256):
            index.change_expansion_search(expansion)

            hits = 0
            t0 = time.perf_counter()
            for query, expected in zip(queries, truth):
                found = {r.key for r in index.search(query, k=K)}
                hits += len(found & {r.key for r in expected})
            elapsed = time.perf_counter() - t0

            recall = hits / (NUM_QUERIES * K)
            print(
                f"\n  expansion_search={expansion:3d}: "
                f"recall@{K}={recall:.3f}, "
                f"{NUM_QUERIES / elapsed:,.0f} queries/sec"
            )

    print("\n" + "=" * 60)
    print("Example complete!")


if __name__ == "__main__":
    main()
