"""Explorer commands. Each module exposes ``run(settings, ...) -> exit status``."""
