from volknobs.cli.main import main

main()
