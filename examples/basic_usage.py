"""Basic usage example for usearch_ctypes.

This script demonstrates:
- Creating an index
- Adding vectors under caller-chosen keys
- Searching for nearest neighbors, with and without a filter
- Saving to disk and reading the metadata back
"""

import numpy as np
from usearch_ctypes import Index, metadata


def main():
    print("usearch_ctypes - Basic Usage Example")
    print("=" * 50)

    # Create a 128-dimensional cosine index
    print("\n1. Creating index...")
    index = Index(dimensions=128, metric="cos", quantization="f16")
    print(f"   Created index with {index.dimensions} dimensions")

    # Add some vectors
    print("\n2. Adding vectors...")
    np.random.seed(42)  # For reproducibility

    for key in range(100, 120):
        vector = np.random.rand(128).astype(np.float32)
        index.add(key, vector)

        if key % 5 == 0:
            print(f"   Added vector {key}")

    print(f"   Total vectors in index: {len(index)}")
    print(f"   Capacity: {index.capacity}")

    # Search for nearest neighbors
    print("\n3. Searching for nearest neighbors...")
    query = np.random.rand(128).astype(np.float32)
    results = index.search(query, k=5)

    print(f"   Found {len(results)} neighbors:")
    for i, result in enumerate(results, 1):
        print(f"   {i}. Key: {result.key:3d}, Distance: {result.distance:.6f}")

    # Only keys ending in an even digit
    print("\n4. Filtered search...")
    results = index.filtered_search(query, 5, lambda key: key % 2 == 0)
    for i, result in enumerate(results, 1):
        print(f"   {i}. Key: {result.key:3d}, Distance: {result.distance:.6f}")

    # Save to disk
    print("\n5. Saving to disk...")
    index.save("basic_example.usearch")
    index.close()

    meta = metadata("basic_example.usearch")
    print(f"   Metric: {meta.metric.name.lower()}")
    print(f"   Dimensions: {meta.dimensions}")
    print(f"   Connectivity: {meta.connectivity}")

    with Index.load("basic_example.usearch") as loaded:
        print(f"   Reloaded {len(loaded)} vectors")

    print("\n" + "=" * 50)
    print("Example complete!")


if __name__ == "__main__":
    main()
