"""
Error taxonomy for circuit construction, site resolution and execution.

All errors derive from ``ValueError`` so callers that only care about bad
inputs can keep catching the builtin.
"""


class CircuitValidationError(ValueError):
    """
    Raised while a circuit is being built: malformed stochastic outcomes,
    probability mass above ``1 + tolerance``, a disallowed RNG stream key,
    an unknown boundary condition or a non-positive step count.
    """


class GeometryResolutionError(ValueError):
    """
    Raised when a geometry cannot be turned into concrete sites for a given
    step, lattice size and boundary condition.

    Resolution happens lazily during expansion or execution, so a circuit may
    hold geometries that only fail once they are actually resolved.
    """


class ExecutionContractError(ValueError):
    """
    Raised when execution inputs do not fit together, e.g. a repeat count
    below one or a state whose lattice does not match the circuit.
    """
