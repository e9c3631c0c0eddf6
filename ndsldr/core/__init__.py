# ndsldr core: header codec, memory map and layout resolution
