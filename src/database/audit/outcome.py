"""Composite pass/fail for one test case."""


class CheckOutcome:
    """
    Logical AND over every sub-check result, without short-circuiting.

    Callers always run each sub-check and fold its result in afterwards:

        outcome = CheckOutcome()
        outcome &= check_genes(db)
        outcome &= check_assembly(db)   # runs even if check_genes failed
        return outcome.passed
    """

    __slots__ = ("passed", "sub_checks", "failures")

    def __init__(self):
        self.passed = True
        self.sub_checks = 0
        self.failures = 0

    def record(self, result: bool) -> bool:
        """Fold one sub-check result in and return it unchanged."""
        result = bool(result)
        self.sub_checks += 1
        if not result:
            self.failures += 1
        self.passed = self.passed and result
        return result

    def fail(self) -> None:
        """Mark the outcome failed without a sub-check result."""
        self.record(False)

    def __iand__(self, result: bool) -> "CheckOutcome":
        self.record(result)
        return self

    def __bool__(self) -> bool:
        return self.passed

    def __repr__(self) -> str:
        return f"CheckOutcome(passed={self.passed}, sub_checks={self.sub_checks}, failures={self.failures})"
