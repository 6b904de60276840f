"""CLI subcommands for depatlas."""
