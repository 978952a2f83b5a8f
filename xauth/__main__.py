from xauth.cli import main

main()
