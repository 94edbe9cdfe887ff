from typing import Optional


def format_population(population: Optional[int]) -> str:
    """Human-readable population ('331.0 million', '1.40 billion')."""
    if population is None:
        return "Unknown"

    if population >= 1_000_000_000:
        return f"{population / 1_000_000_000:.2f} billion"
    elif population >= 1_000_000:
        return f"{population / 1_000_000:.1f} million"
    elif population >= 1_000:
        return f"{population / 1_000:.1f} thousand"
    return str(population)
