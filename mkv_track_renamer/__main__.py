from .renamer import main

main()
