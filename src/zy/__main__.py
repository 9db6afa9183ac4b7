"""Run the Zy interpreter.

Usage:
    python -m zy                      # interactive REPL
    python -m zy run prog.zy a b      # batch mode, args = ["a", "b"]
"""


def main():
    from zy.cli.main import cli
    cli(prog_name="zy")


if __name__ == "__main__":
    main()
