"""Value types shared by the index and the exact search helpers."""

from dataclasses import dataclass, fields

from usearch_ctypes._ffi import InitOptions, MetricKind, ScalarKind
from usearch_ctypes.exceptions import InvalidArgumentError, NativeError

# HNSW defaults (edges per node, ef_construction, ef_search)
DEFAULT_CONNECTIVITY = 16
DEFAULT_EXPANSION_ADD = 128
DEFAULT_EXPANSION_SEARCH = 64


@dataclass(frozen=True)
class SearchResult:
    """A single search result.

    Attributes:
        key: Caller-chosen 64-bit key of the matched vector
        distance: Distance to the query vector (lower is closer)
    """

    key: int
    distance: float

    def __repr__(self) -> str:
        return f"SearchResult(key={self.key}, distance={self.distance:.6f})"


@dataclass(frozen=True)
class IndexMetadata:
    """Configuration recovered from a persisted index header.

    The number of stored vectors is not part of the header and is not
    reported here; open the index to get its size.
    """

    metric: MetricKind
    dimensions: int
    quantization: ScalarKind
    connectivity: int
    expansion_add: int
    expansion_search: int
    multi: bool

    @classmethod
    def from_options(cls, options: InitOptions) -> "IndexMetadata":
        try:
            metric = MetricKind.parse(int(options.metric_kind))
            quantization = ScalarKind.parse(int(options.quantization))
        except InvalidArgumentError as e:
            raise NativeError(f"Unsupported index header: {e}") from None
        return cls(
            metric=metric,
            dimensions=int(options.dimensions),
            quantization=quantization,
            connectivity=int(options.connectivity),
            expansion_add=int(options.expansion_add),
            expansion_search=int(options.expansion_search),
            multi=bool(options.multi),
        )


@dataclass
class IndexConfig:
    """Configuration options for a USearch HNSW index.

    Attributes:
        dimensions: Vector dimensionality, fixed for the index lifetime
        metric: Distance metric. Default: cosine
        quantization: Storage precision. Default: f16
        connectivity: Edges per node (M parameter).
            Higher = better recall, more memory. Default: 16
        expansion_add: Construction quality parameter (ef_construction).
            Higher = better index quality, slower build. Default: 128
        expansion_search: Search quality parameter (ef_search).
            Higher = better search quality, slower search. Default: 64
        multi: Allow multiple vectors per key. Default: False
    """

    dimensions: int
    metric: MetricKind = MetricKind.COS
    quantization: ScalarKind = ScalarKind.F16
    connectivity: int = DEFAULT_CONNECTIVITY
    expansion_add: int = DEFAULT_EXPANSION_ADD
    expansion_search: int = DEFAULT_EXPANSION_SEARCH
    multi: bool = False

    def __post_init__(self) -> None:
        self.metric = MetricKind.parse(self.metric)
        self.quantization = ScalarKind.parse(self.quantization)

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            InvalidArgumentError: If parameters are out of valid ranges
        """
        if self.dimensions < 1:
            raise InvalidArgumentError(
                f"dimensions must be >= 1, got {self.dimensions}"
            )
        if self.connectivity < 1:
            raise InvalidArgumentError(
                f"connectivity must be >= 1, got {self.connectivity}"
            )
        if self.expansion_add < 1:
            raise InvalidArgumentError(
                f"expansion_add must be >= 1, got {self.expansion_add}"
            )
        if self.expansion_search < 1:
            raise InvalidArgumentError(
                f"expansion_search must be >= 1, got {self.expansion_search}"
            )
        if self.metric == MetricKind.UNKNOWN:
            raise InvalidArgumentError("metric must be set")
        if self.quantization == ScalarKind.UNKNOWN:
            raise InvalidArgumentError("quantization must be set")

    @classmethod
    def from_metadata(cls, metadata: IndexMetadata) -> "IndexConfig":
        return cls(**{f.name: getattr(metadata, f.name) for f in fields(cls)})

    def to_options(self) -> InitOptions:
        options = InitOptions()
        options.metric_kind = int(self.metric)
        options.metric = None
        options.quantization = int(self.quantization)
        options.dimensions = self.dimensions
        options.connectivity = self.connectivity
        options.expansion_add = self.expansion_add
        options.expansion_search = self.expansion_search
        options.multi = self.multi
        return options
