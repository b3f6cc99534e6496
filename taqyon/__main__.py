from taqyon.cli import main

main()
