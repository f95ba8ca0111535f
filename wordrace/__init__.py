"""WordRace multiplayer word-race game backend."""
