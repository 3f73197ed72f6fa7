from batchfeeder.cli.main import main

main()
