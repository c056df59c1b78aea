from .circuit_breaker import CircuitState, FetcherCircuitBreaker

__all__ = ["CircuitState", "FetcherCircuitBreaker"]
