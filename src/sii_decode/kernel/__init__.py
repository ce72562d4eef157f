"""Format-level building blocks: BSII model, parser, emitter, ScsC container."""
