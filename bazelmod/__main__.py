from bazelmod.cli import main

main()
