#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import os
import shutil
import unittest
from collections import OrderedDict

from trimsa.tests.data_files import *
from trimsa.process.sequence import AlignmentList, Alignment

temp_dir = ".trimsa-test-write"


class ProcessWriteSinglesTest(unittest.TestCase):

    def setUp(self):

        os.makedirs(temp_dir)
        self.aln_obj = Alignment(simple_nexus[0])
        self.output_file = os.path.join(temp_dir, "test")

    def tearDown(self):

        shutil.rmtree(temp_dir)

    def _read(self, path):
        with open(path) as fh:
            return fh.read()

    def test_write_fasta(self):

        self.aln_obj.write_to_file("fasta", self.output_file)

        self.assertEqual(self._read(self.output_file),
                         ">spa\nACGTACGTAC\n>spb\nACGTACGTAA\n"
                         ">spc\nACGAACGTAC\n>spd\nACGAACGTAA\n")

    def test_write_nexus(self):

        self.aln_obj.write_to_file("nexus", self.output_file)

        self.assertEqual(self._read(self.output_file),
                         "#NEXUS\nbegin data;\n"
                         "dimensions ntax=4 nchar=10;\n"
                         "format datatype=dna missing=? gap=-;\n"
                         "matrix\n"
                         "spa ACGTACGTAC\n"
                         "spb ACGTACGTAA\n"
                         "spc ACGAACGTAC\n"
                         "spd ACGAACGTAA\n"
                         ";\nend;\n")

    def test_write_nexus_interleave(self):

        self.aln_obj.write_to_file("nexus-int", self.output_file)

        self.assertEqual(self._read(self.output_file),
                         "#NEXUS\nbegin data;\n"
                         "dimensions ntax=4 nchar=10;\n"
                         "format datatype=dna missing=? gap=- interleave;\n"
                         "matrix\n"
                         "spa ACGTACGTAC\n"
                         "spb ACGTACGTAA\n"
                         "spc ACGAACGTAC\n"
                         "spd ACGAACGTAA\n"
                         ";\nend;\n")

    def test_write_phylip(self):

        self.aln_obj.write_to_file("phylip", self.output_file)

        self.assertEqual(self._read(self.output_file),
                         "4 10\nspa ACGTACGTAC\nspb ACGTACGTAA\n"
                         "spc ACGAACGTAC\nspd ACGAACGTAA\n")

    def test_write_padding(self):

        aln = Alignment("memory", matrix=OrderedDict(
            [("a", "ACGT"), ("longer_name", "ACGA")]))
        aln.write_to_file("phylip", self.output_file)

        self.assertEqual(self._read(self.output_file),
                         "2 4\na           ACGT\nlonger_name ACGA\n")

    def test_write_interleave_phylip_ids_first_round(self):

        aln = Alignment("memory", matrix=OrderedDict(
            [("spa", "A" * 100), ("spb", "C" * 100)]))
        aln.write_to_file("phylip-int", self.output_file)

        self.assertEqual(self._read(self.output_file),
                         "2 100"
                         "\nspa {}\nspb {}\n".format("A" * 80, "C" * 80) +
                         "\n{}\n{}\n".format("A" * 20, "C" * 20))

    def test_write_interleave_fasta(self):

        aln = Alignment("memory", matrix=OrderedDict([("spa", "A" * 100)]))
        aln.write_to_file("fasta-int", self.output_file)

        self.assertEqual(self._read(self.output_file),
                         ">spa\n{}\n{}\n".format("A" * 80, "A" * 20))

    def test_write_long_chunks(self):

        aln = Alignment("memory", matrix=OrderedDict([("spa", "A" * 2000)]))
        aln.write_to_file("fasta-int", self.output_file)

        self.assertEqual(self._read(self.output_file).count("\n"), 5)

    def test_round_trip_nexus_interleave(self):

        self.aln_obj.write_to_file("nexus-int", self.output_file)
        aln = Alignment(self.output_file, input_format="nexus")

        self.assertEqual(aln.matrix, self.aln_obj.matrix)

    def test_round_trip_phylip_interleave(self):

        aln = Alignment("memory", matrix=OrderedDict(
            [("spa", "ACGT" * 50), ("spb", "TGCA" * 50)]))
        aln.write_to_file("phylip-int", self.output_file)

        new_aln = Alignment(self.output_file, input_format="phylip")
        self.assertEqual(new_aln.matrix, aln.matrix)

    def test_format_equivalence(self):

        fasta = os.path.join(temp_dir, "aln.fas")
        nexus = os.path.join(temp_dir, "aln.nex")
        phylip = os.path.join(temp_dir, "aln.phy")

        Alignment(single_dna_fas[0]).write_to_file("nexus", nexus)
        Alignment(nexus).write_to_file("phylip", phylip)
        Alignment(phylip).write_to_file("fasta", fasta)

        self.assertEqual(Alignment(fasta).matrix,
                         Alignment(single_dna_fas[0]).matrix)

    def test_write_protein_nexus(self):

        aln = Alignment(protein_fas[0], datatype="aa")
        aln.write_to_file("nexus", self.output_file)

        self.assertIn("format datatype=protein missing=? gap=-;",
                      self._read(self.output_file))


class ProcessWriteConcatenationTest(unittest.TestCase):

    def setUp(self):

        os.makedirs(temp_dir)
        self.aln_obj = AlignmentList(concat_dna_fas)
        self.concatenated = self.aln_obj.concatenate()

    def tearDown(self):

        shutil.rmtree(temp_dir)

    def _read(self, path):
        with open(path) as fh:
            return fh.read()

    def test_write_charset(self):

        output_file = os.path.join(temp_dir, "concat.nex")
        part_file = self.concatenated.write_to_file(
            "nexus", output_file, partition_format="charset")

        self.assertIsNone(part_file)
        self.assertTrue(self._read(output_file).endswith(
            "end;\nbegin sets;\ncharset gene1 = 1-10;\n"
            "charset gene2 = 11-16;\ncharset gene10 = 17-24;\nend;\n"))

    def test_write_charset_codon(self):

        output_file = os.path.join(temp_dir, "concat.nex")
        self.concatenated.write_to_file("nexus", output_file,
                                        partition_format="charset-codon")

        self.assertIn("charset gene2_Subset1 = 11-16\\3;\n"
                      "charset gene2_Subset2 = 12-16\\3;\n"
                      "charset gene2_Subset3 = 13-16\\3;\n",
                      self._read(output_file))

    def test_write_raxml_companion(self):

        output_file = os.path.join(temp_dir, "concat.phy")
        part_file = self.concatenated.write_to_file(
            "phylip", output_file, partition_format="raxml")

        self.assertEqual(part_file,
                         os.path.join(temp_dir, "concat_partition.txt"))
        self.assertEqual(self._read(part_file),
                         "DNA, gene1 = 1-10\nDNA, gene2 = 11-16\n"
                         "DNA, gene10 = 17-24\n")

    def test_write_charset_non_nexus(self):

        output_file = os.path.join(temp_dir, "concat.fas")
        part_file = self.concatenated.write_to_file(
            "fasta", output_file, partition_format="charset")

        self.assertEqual(part_file,
                         os.path.join(temp_dir, "concat_partition.nex"))
        self.assertTrue(self._read(part_file).startswith("#nexus\n"))

    def test_concatenated_round_trip(self):

        output_file = os.path.join(temp_dir, "concat.nex")
        self.concatenated.write_to_file("nexus", output_file,
                                        partition_format="charset")

        aln = Alignment(output_file)
        self.assertEqual(aln.matrix, self.concatenated.matrix)


if __name__ == "__main__":
    unittest.main()
