from regen.cli.app import main

main()
