from typing import Final

# constants fixed by the SVR3 S5 layout
block_size_bits: Final          = 10
block_size: Final               = 1 << block_size_bits
inode_size: Final               = 64
inode_table_offset: Final       = 0x800     # inode 1 starts two blocks into the partition
dirsiz: Final                   = 14        # name width in a directory entry
dirent_size: Final              = 16
entries_per_block: Final        = block_size // dirent_size
pointers_per_block: Final       = block_size // 4
naddr: Final                    = 13        # 10 direct + single, double, triple indirect
ndirect: Final                  = 10

# partition table is not decoded, offsets are known in advance
partition_offsets: Final = (
    0x00000000,
)

# inode numbers are 16 bits wide in directory entries
max_inodes: Final = 1 << 16
