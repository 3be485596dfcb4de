"""State encoding for the policy model."""

from policy_loop.ai.encoder import encode, encode_message, encode_snapshot, input_digest

__all__ = ["encode", "encode_message", "encode_snapshot", "input_digest"]
