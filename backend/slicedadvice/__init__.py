"""SlicedAdvice booking and payment escrow service."""
