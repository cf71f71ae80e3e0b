"""
Quest Notifier Test Suite
=========================

Test Organization
-----------------
- tests/unit/   : Fast unit tests with in-memory fakes (no Firebase, no network)

Testing Philosophy
------------------
- Services run unmodified against fakes that keep the repositories' query semantics
- Fixed clocks; every time-dependent operation takes an explicit `now`
- Follow AAA pattern: Arrange, Act, Assert
"""
