"""Runtime configuration: dotenv loading, CLI/env resolution and logging setup."""
