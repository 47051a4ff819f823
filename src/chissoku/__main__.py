from chissoku.cli import main

main()
