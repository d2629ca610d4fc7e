from prometheus_client import Gauge, Counter, Histogram

# Embedding Provider Metrics
EMBEDDING_GENERATION_LATENCY_SECONDS = Histogram(
    'agent_memory_embedding_latency_seconds',
    'Latency of embedding provider requests',
    buckets=(.005, .01, .025, .05, .075, .1, .25, .5, .75, 1.0, 2.5, 5.0, 7.5, 10.0, float('inf'))
)
EMBEDDING_GENERATION_FAILURES_TOTAL = Counter(
    'agent_memory_embedding_failures_total',
    'Total number of failed embedding provider requests'
)
EMBEDDING_BATCHES_TOTAL = Counter(
    'agent_memory_embedding_batches_total',
    'Total number of embedding batches sent to the provider'
)
EMBEDDING_SERVICE_CIRCUIT_BREAKER_STATE = Gauge(
    'agent_memory_embedding_circuit_breaker_state',
    'Current state of the embedding service circuit breaker (0=CLOSED, 1=OPEN, 0.5=HALF_OPEN)'
)

# Vector Store Operation Metrics
VECTOR_STORE_OPERATION_LATENCY_SECONDS = Histogram(
    'agent_memory_store_operation_latency_seconds',
    'Latency of vector store operations',
    ['operation'],
    buckets=(.001, .005, .01, .025, .05, .075, .1, .25, .5, .75, 1.0, 2.5, 5.0, float('inf'))
)
VECTOR_STORE_OPERATION_FAILURES_TOTAL = Counter(
    'agent_memory_store_operation_failures_total',
    'Total number of failed vector store operations',
    ['operation']
)

# Memory Engine Metrics
MEMORY_RECORDS_SAVED_TOTAL = Counter(
    'agent_memory_records_saved_total',
    'Total number of memory records written by save operations'
)
MEMORY_SEARCHES_TOTAL = Counter(
    'agent_memory_searches_total',
    'Total number of memory searches served',
    ['result']  # hit, miss
)
