from fridgelist.cli import main

main()
