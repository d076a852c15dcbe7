"""Core analysis engines: hashing, scanning, flow, runtime, ledger, gate, watch."""
