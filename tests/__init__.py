"""
Test Suite for SynthProof

Provides tests for:
- Column classification and value synthesis
- Privacy transforms and audit
- Commitments, ledger and content stores
- Orchestration, verification and receipts
- Configuration management
- HTTP and command-line adapters
"""

__version__ = "1.0.0"
